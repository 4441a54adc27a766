from dataclasses import dataclass
from typing import Optional

from ..config import TriggerConfig


@dataclass
class TriggerState:
    armed: bool = False
    last_cleared_at: Optional[int] = None


class AnomalyTrigger:
    """Hysteresis detector for a high heart rate.

    A reading above the threshold raises the emergency. Once raised it stays
    active until `acknowledge()`; a falling bpm never clears it. After an
    acknowledge, new raises are suppressed for `cooldown_ms`.
    """

    def __init__(self, cfg: TriggerConfig | None = None):
        self.cfg = cfg or TriggerConfig()
        self.state = TriggerState()

    def is_active(self) -> bool:
        return self.state.armed

    def _cooling_down(self, now: int) -> bool:
        cleared = self.state.last_cleared_at
        return cleared is not None and now - cleared <= self.cfg.cooldown_ms

    def feed(self, bpm: int, now: int) -> bool:
        """Evaluate one reading; returns True only when this call raised."""
        if bpm <= 0 or self.state.armed:
            return False
        if bpm > self.cfg.high_threshold_bpm and not self._cooling_down(now):
            self.state.armed = True
            return True
        return False

    def force(self) -> bool:
        """Raise regardless of bpm and cool-down (manual SOS)."""
        if self.state.armed:
            return False
        self.state.armed = True
        return True

    def acknowledge(self, now: int) -> bool:
        """Clear an active emergency; a no-op while normal. Returns True if it cleared."""
        if not self.state.armed:
            return False
        self.state.armed = False
        self.state.last_cleared_at = now
        return True
