from dataclasses import dataclass
from typing import Dict, Iterable, List

import numpy as np

from .samples import Sample


@dataclass(frozen=True)
class BinnedPoint:
    bucket_start: int
    bucket_center: int
    min: int
    median: int
    max: int
    sample_count: int

    def to_dict(self) -> Dict:
        return {
            "bucket_start": self.bucket_start,
            "bucket_center": self.bucket_center,
            "min": self.min,
            "median": self.median,
            "max": self.max,
            "sample_count": self.sample_count,
        }


def bucket_key(timestamp: int, window_start: int, bin_size_ms: int) -> int:
    """Start of the bucket holding `timestamp`, on a grid anchored at `window_start`."""
    return window_start + ((timestamp - window_start) // bin_size_ms) * bin_size_ms


def integer_median(sorted_values: np.ndarray) -> int:
    """Median of an ascending array.

    Even-sized buckets take the mean of the two central values truncated toward
    zero, so [60, 65] gives 62 rather than 62.5.
    """
    n = sorted_values.size
    mid = n // 2
    if n % 2 == 1:
        return int(sorted_values[mid])
    lo, hi = int(sorted_values[mid - 1]), int(sorted_values[mid])
    return int((lo + hi) / 2)


def bin_samples(
    samples: Iterable[Sample],
    window_start: int,
    window_end: int,
    bin_size_ms: int,
) -> List[BinnedPoint]:
    """Group samples in [window_start, window_end] into fixed-size buckets.

    Only non-empty buckets are returned, in chronological order. Missing
    buckets are left as gaps for the consumer to detect. Non-physiological
    readings (bpm <= 0) are ignored. An empty or inverted window yields [].
    """
    if window_end <= window_start or bin_size_ms <= 0:
        return []

    buckets: Dict[int, List[int]] = {}
    for s in samples:
        if s.bpm <= 0 or s.timestamp < window_start or s.timestamp > window_end:
            continue
        key = bucket_key(s.timestamp, window_start, bin_size_ms)
        buckets.setdefault(key, []).append(s.bpm)

    points: List[BinnedPoint] = []
    for key in sorted(buckets):
        values = np.sort(np.asarray(buckets[key], dtype=np.int64))
        points.append(
            BinnedPoint(
                bucket_start=key,
                bucket_center=key + bin_size_ms // 2,
                min=int(values[0]),
                median=integer_median(values),
                max=int(values[-1]),
                sample_count=int(values.size),
            )
        )
    return points
