from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

# Legacy sentinels emitted by the watch sensor layer on the bpm channel.
PERMISSION_DENIED_BPM = -1
SENSOR_UNAVAILABLE_BPM = -2


@dataclass(frozen=True)
class Sample:
    timestamp: int  # ms since epoch
    bpm: int

    @property
    def is_valid(self) -> bool:
        return self.bpm > 0

    def to_dict(self) -> Dict:
        return {"timestamp": int(self.timestamp), "bpm": int(self.bpm)}

    @staticmethod
    def from_dict(payload: Dict) -> "Sample":
        return Sample(timestamp=int(payload["timestamp"]), bpm=int(payload["bpm"]))


class SensorStatus(str, Enum):
    READING = "reading"
    WAITING = "waiting"
    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class SensorReading:
    """What the sensor layer reports: either a bpm value or why there is none."""

    status: SensorStatus
    bpm: Optional[int] = None
    timestamp: Optional[int] = None

    @staticmethod
    def reading(bpm: int, timestamp: int | None = None) -> "SensorReading":
        return SensorReading(status=SensorStatus.READING, bpm=int(bpm), timestamp=timestamp)

    @staticmethod
    def from_raw(value: int, timestamp: int | None = None) -> "SensorReading":
        value = int(value)
        if value > 0:
            return SensorReading.reading(value, timestamp)
        if value == PERMISSION_DENIED_BPM:
            return SensorReading(status=SensorStatus.PERMISSION_DENIED, timestamp=timestamp)
        if value == SENSOR_UNAVAILABLE_BPM:
            return SensorReading(status=SensorStatus.UNAVAILABLE, timestamp=timestamp)
        # zero or any other non-positive value: sensor still settling
        return SensorReading(status=SensorStatus.WAITING, timestamp=timestamp)

    @property
    def is_reading(self) -> bool:
        return self.status is SensorStatus.READING and self.bpm is not None and self.bpm > 0
