from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

RAISED = "raised"
ACKNOWLEDGED = "acknowledged"

CONFIRMED = "confirmed"
CANCELLED = "cancelled"
ACK_REASONS = (CONFIRMED, CANCELLED)


@dataclass
class EmergencyEvent:
    kind: str  # raised|acknowledged
    bpm: Optional[int]
    timestamp: int
    reason: Optional[str] = None  # confirmed|cancelled for acknowledged events
    manual: bool = False  # raised from an SOS request rather than a bpm reading
    actor: Optional[str] = None  # API principal behind a manual request or acknowledge

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
