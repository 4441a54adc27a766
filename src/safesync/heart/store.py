from typing import Iterable, List, Optional, Tuple

from .samples import Sample


class TimeSeriesStore:
    """In-memory, time-ordered buffer of heart-rate samples.

    Callers append in chronological order, but pruning and queries compare
    timestamps sample by sample so out-of-order or duplicate entries are
    handled correctly.
    """

    def __init__(self, samples: Iterable[Sample] | None = None):
        self._samples: List[Sample] = list(samples or [])

    def __len__(self) -> int:
        return len(self._samples)

    def append(self, sample: Sample) -> None:
        self._samples.append(sample)

    def replace(self, samples: Iterable[Sample]) -> None:
        self._samples = list(samples)

    def latest(self) -> Optional[Sample]:
        return self._samples[-1] if self._samples else None

    def prune(self, threshold_ts: int) -> bool:
        """Drop every sample older than `threshold_ts`; True if anything was removed."""
        kept = [s for s in self._samples if s.timestamp >= threshold_ts]
        removed = len(kept) != len(self._samples)
        if removed:
            self._samples = kept
        return removed

    def query(self, start_ts: int, end_ts: int) -> List[Sample]:
        return [s for s in self._samples if start_ts <= s.timestamp <= end_ts]

    def snapshot(self) -> Tuple[Sample, ...]:
        return tuple(self._samples)
