import time


def now_ms() -> int:
    """Return the current wall-clock time in integer milliseconds since epoch."""
    return int(time.time() * 1000)


def resolve_now(now: int | None) -> int:
    return now_ms() if now is None else int(now)
