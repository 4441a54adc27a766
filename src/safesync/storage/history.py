"""Persistence for the heart-rate history.

The on-disk format is the one the watch app writes: `timestamp,bpm` pairs
joined with semicolons, e.g. ``1700000000000,72;1700000005000,75``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

from ..heart.samples import Sample

logger = logging.getLogger(__name__)

ENTRY_SEP = ";"
FIELD_SEP = ","


def encode_history(samples: Iterable[Sample]) -> str:
    return ENTRY_SEP.join(f"{int(s.timestamp)}{FIELD_SEP}{int(s.bpm)}" for s in samples)


def decode_history(payload: str) -> List[Sample]:
    """Parse a serialized history, skipping malformed entries one by one."""
    samples: List[Sample] = []
    if not payload:
        return samples
    for entry in payload.split(ENTRY_SEP):
        entry = entry.strip()
        if not entry:
            continue
        parts = entry.split(FIELD_SEP)
        if len(parts) != 2:
            logger.warning("History: skipping entry with %d fields: %r", len(parts), entry)
            continue
        try:
            samples.append(Sample(timestamp=int(parts[0]), bpm=int(parts[1])))
        except ValueError:
            logger.warning("History: skipping non-numeric entry: %r", entry)
    return samples


class HistoryStore:
    def load_all(self) -> List[Sample]:  # pragma: no cover - interface
        raise NotImplementedError

    def save_all(self, samples: Iterable[Sample]) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class MemoryHistoryStore(HistoryStore):
    def __init__(self, payload: str = ""):
        self.payload = payload

    def load_all(self) -> List[Sample]:
        return decode_history(self.payload)

    def save_all(self, samples: Iterable[Sample]) -> None:
        self.payload = encode_history(samples)


class FileHistoryStore(HistoryStore):
    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load_all(self) -> List[Sample]:
        if not self.path.exists():
            return []
        # undecodable bytes become U+FFFD and fail the numeric parse of their own entry only
        return decode_history(self.path.read_bytes().decode("utf-8", errors="replace"))

    def save_all(self, samples: Iterable[Sample]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(encode_history(samples))
        tmp_path.replace(self.path)
