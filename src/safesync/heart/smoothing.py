from typing import List, Sequence

import numpy as np

DEFAULT_ALPHA = 0.3


def ema(values: Sequence[float], alpha: float = DEFAULT_ALPHA) -> List[float]:
    """Exponential moving average with the first output pinned to the first input.

    out[i] = alpha * values[i] + (1 - alpha) * out[i - 1]
    """
    if not 0.0 < alpha <= 1.0:
        raise ValueError(f"alpha must be in (0, 1], got {alpha}")
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return []
    out = np.empty_like(arr)
    out[0] = arr[0]
    for i in range(1, arr.size):
        out[i] = alpha * arr[i] + (1.0 - alpha) * out[i - 1]
    return [float(v) for v in out]
