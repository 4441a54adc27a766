import math
from typing import Optional


class EmergencyCountdown:
    """SOS grace period: the wearer can cancel before the emergency is confirmed."""

    def __init__(self, seconds: int = 10):
        self.seconds = seconds
        self._deadline: Optional[int] = None

    @property
    def running(self) -> bool:
        return self._deadline is not None

    def start(self, now: int) -> None:
        if self._deadline is None:
            self._deadline = now + self.seconds * 1000

    def stop(self) -> None:
        self._deadline = None

    def remaining_s(self, now: int) -> int:
        if self._deadline is None:
            return 0
        return max(0, math.ceil((self._deadline - now) / 1000))

    def expired(self, now: int) -> bool:
        return self._deadline is not None and now >= self._deadline
