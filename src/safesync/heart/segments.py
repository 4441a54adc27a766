from typing import List, Sequence

from .binning import BinnedPoint


def segment_runs(timestamps: Sequence[int], max_gap_ms: int) -> List[range]:
    """Split ordered timestamps into maximal runs with no gap above `max_gap_ms`.

    Returns index ranges. An empty input still yields a single empty run.
    """
    n = len(timestamps)
    if n == 0:
        return [range(0, 0)]
    runs: List[range] = []
    start = 0
    for i in range(1, n):
        if timestamps[i] - timestamps[i - 1] > max_gap_ms:
            runs.append(range(start, i))
            start = i
    runs.append(range(start, n))
    return runs


def split_points(points: Sequence[BinnedPoint], max_gap_ms: int) -> List[List[BinnedPoint]]:
    """Contiguous chart segments so a line is never drawn across a data gap."""
    if not points:
        return []
    runs = segment_runs([p.bucket_start for p in points], max_gap_ms)
    return [[points[i] for i in run] for run in runs]
