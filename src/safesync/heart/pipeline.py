"""Composition root for the heart-rate pipeline.

Sensor readings flow into the time-series store and the anomaly trigger;
chart queries are computed on demand from a snapshot of the store. All
mutation happens under one lock so a UI thread can read while a single
sensor thread writes. Relay calls leave the caller thread and are
delivered by a background worker.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import Paths, PipelineConfig
from ..storage.history import FileHistoryStore, HistoryStore
from ..transport.relays import UNKNOWN_BATTERY_LEVEL, Relay, RelayDispatcher, build_relays
from ..utils.time_utils import resolve_now
from .binning import BinnedPoint, bin_samples
from .countdown import EmergencyCountdown
from .events import ACK_REASONS, ACKNOWLEDGED, CANCELLED, CONFIRMED, RAISED, EmergencyEvent
from .samples import Sample, SensorReading, SensorStatus
from .segments import segment_runs
from .smoothing import ema
from .store import TimeSeriesStore
from .trigger import AnomalyTrigger

logger = logging.getLogger(__name__)


@dataclass
class ChartSeries:
    window_start: int
    window_end: int
    bin_size_ms: int
    bins: List[BinnedPoint] = field(default_factory=list)
    smoothed_medians: List[float] = field(default_factory=list)
    segments: List[range] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "window_start": self.window_start,
            "window_end": self.window_end,
            "bin_size_ms": self.bin_size_ms,
            "bins": [b.to_dict() for b in self.bins],
            "smoothed_medians": list(self.smoothed_medians),
            "segments": [[r.start, r.stop] for r in self.segments],
        }


class HeartRatePipeline:
    def __init__(
        self,
        cfg: PipelineConfig | None = None,
        history: HistoryStore | None = None,
        relays: Sequence[Relay] | None = None,
    ):
        self.cfg = cfg or PipelineConfig()
        self.history = history
        self.relays: List[Relay] = list(relays or [])
        self._dispatcher = RelayDispatcher(self.relays)
        self.store = TimeSeriesStore()
        self.trigger = AnomalyTrigger(self.cfg.trigger)
        self.countdown = EmergencyCountdown(self.cfg.trigger.countdown_seconds)
        self._lock = threading.RLock()
        self._status = SensorStatus.WAITING
        self._last_reading_at: Optional[int] = None
        self._emergency_bpm: Optional[int] = None
        self._history_loaded = False

    def initialize(self, now: int | None = None) -> int:
        """Load persisted history and drop what is past retention. Returns samples kept.

        If the history cannot be read the pipeline starts empty and `save()` stays
        disabled, so the unreadable file is left as it is on disk.
        """
        samples: List[Sample] = []
        loaded = True
        if self.history is not None:
            try:
                samples = self.history.load_all()
            except Exception as e:
                loaded = False
                logger.warning("History load failed, starting empty and not saving: %s", e)
        with self._lock:
            self.store.replace(samples)
            self.store.prune(resolve_now(now) - self.cfg.retention_ms)
            kept = len(self.store)
            self._history_loaded = loaded
        logger.info("Pipeline initialized with %d samples", kept)
        return kept

    def save(self) -> bool:
        if self.history is None:
            return False
        if not self._history_loaded:
            logger.warning("History not loaded, refusing to overwrite it")
            return False
        samples = self.snapshot()
        try:
            self.history.save_all(samples)
        except Exception as e:
            logger.warning("History save failed: %s", e)
            return False
        return True

    def prune(self, now: int | None = None) -> bool:
        threshold = resolve_now(now) - self.cfg.retention_ms
        with self._lock:
            removed = self.store.prune(threshold)
        if removed:
            self.save()
        return removed

    def on_reading(self, reading: SensorReading | int, now: int | None = None) -> bool:
        """Feed one sensor report. Returns True if a sample was stored."""
        if not isinstance(reading, SensorReading):
            reading = SensorReading.from_raw(reading)
        ts = resolve_now(reading.timestamp if reading.timestamp is not None else now)

        if not reading.is_reading:
            with self._lock:
                self._status = reading.status
            logger.debug("Sensor status %s at %d", reading.status.value, ts)
            return False

        bpm = int(reading.bpm)
        event = None
        with self._lock:
            self._status = SensorStatus.READING
            self._last_reading_at = ts
            latest = self.store.latest()
            stored = not (self.cfg.skip_repeated_bpm and latest is not None and latest.bpm == bpm)
            if stored:
                self.store.append(Sample(timestamp=ts, bpm=bpm))
            if self.trigger.feed(bpm, ts):
                self.countdown.start(ts)
                self._emergency_bpm = bpm
                event = EmergencyEvent(kind=RAISED, bpm=bpm, timestamp=ts)

        self._dispatch("on_sample", bpm, ts)
        if event is not None:
            logger.info("Emergency raised at %d bpm", bpm)
            self._dispatch("on_emergency", event)
        return stored

    def sensor_status(self, now: int | None = None) -> SensorStatus:
        now = resolve_now(now)
        with self._lock:
            if (
                self._status is SensorStatus.READING
                and self._last_reading_at is not None
                and now - self._last_reading_at > self.cfg.bpm_timeout_ms
            ):
                return SensorStatus.TIMEOUT
            return self._status

    def query(self, start_ts: int, end_ts: int) -> List[Sample]:
        with self._lock:
            return self.store.query(start_ts, end_ts)

    def snapshot(self) -> Tuple[Sample, ...]:
        with self._lock:
            return self.store.snapshot()

    def latest(self) -> Optional[Sample]:
        with self._lock:
            return self.store.latest()

    def chart(
        self,
        window_ms: int | None = None,
        now: int | None = None,
        bin_size_ms: int | None = None,
    ) -> ChartSeries:
        window_end = resolve_now(now)
        if window_ms is None:
            window_ms = self.cfg.chart_window_ms
        bin_size = self.cfg.bin_size_ms if bin_size_ms is None else bin_size_ms
        window_start = window_end - window_ms
        bins = bin_samples(self.snapshot(), window_start, window_end, bin_size)
        return ChartSeries(
            window_start=window_start,
            window_end=window_end,
            bin_size_ms=bin_size,
            bins=bins,
            smoothed_medians=ema([b.median for b in bins], self.cfg.ema_alpha),
            segments=segment_runs([b.bucket_start for b in bins], self.cfg.max_gap_ms) if bins else [],
        )

    def is_active(self) -> bool:
        with self._lock:
            return self.trigger.is_active()

    def countdown_remaining(self, now: int | None = None) -> int:
        with self._lock:
            return self.countdown.remaining_s(resolve_now(now))

    def request_emergency(self, now: int | None = None, actor: str | None = None) -> bool:
        """Manual SOS: raise without a bpm condition. False if already active."""
        now = resolve_now(now)
        with self._lock:
            if not self.trigger.force():
                return False
            self.countdown.start(now)
            latest = self.store.latest()
            self._emergency_bpm = latest.bpm if latest is not None else None
            event = EmergencyEvent(kind=RAISED, bpm=self._emergency_bpm, timestamp=now, manual=True, actor=actor)
        logger.info("Emergency requested manually by %s", actor or "watch")
        self._dispatch("on_emergency", event)
        return True

    def acknowledge(self, now: int | None = None, reason: str = CANCELLED, actor: str | None = None) -> bool:
        if reason not in ACK_REASONS:
            raise ValueError(f"reason must be one of {ACK_REASONS}, got {reason!r}")
        now = resolve_now(now)
        with self._lock:
            event = self._acknowledge_locked(now, reason, actor)
        if event is None:
            return False
        logger.info("Emergency acknowledged (%s) by %s", reason, actor or "watch")
        self._dispatch("on_emergency", event)
        return True

    def tick(self, now: int | None = None) -> bool:
        """Confirm the emergency once its countdown has run out. True if confirmed."""
        now = resolve_now(now)
        with self._lock:
            if not self.countdown.expired(now):
                return False
            event = self._acknowledge_locked(now, CONFIRMED)
        if event is None:
            return False
        logger.info("Emergency confirmed after countdown")
        self._dispatch("on_emergency", event)
        return True

    def _acknowledge_locked(self, now: int, reason: str, actor: str | None = None) -> Optional[EmergencyEvent]:
        self.countdown.stop()
        if not self.trigger.acknowledge(now):
            return None
        bpm, self._emergency_bpm = self._emergency_bpm, None
        return EmergencyEvent(kind=ACKNOWLEDGED, bpm=bpm, timestamp=now, reason=reason, actor=actor)

    def status(self, now: int | None = None) -> Dict[str, Any]:
        now = resolve_now(now)
        sensor = self.sensor_status(now)
        with self._lock:
            latest = self.store.latest()
            return {
                "sensor_status": sensor.value,
                "latest": latest.to_dict() if latest is not None else None,
                "sample_count": len(self.store),
                "emergency_active": self.trigger.is_active(),
                "countdown_remaining_s": self.countdown.remaining_s(now),
                "last_cleared_at": self.trigger.state.last_cleared_at,
            }

    def on_battery(self, level: int, scale: int = 100, now: int | None = None) -> int:
        """Relay the watch battery as a percentage; -1 when the level is unknown."""
        if level < 0 or scale <= 0:
            pct = UNKNOWN_BATTERY_LEVEL
        else:
            pct = level * 100 // scale
        self._dispatch("on_battery", pct, resolve_now(now))
        return pct

    def flush(self, timeout: float | None = None) -> bool:
        """Block until queued relay calls have been delivered."""
        return self._dispatcher.flush(timeout)

    def close(self) -> None:
        self._dispatcher.close()

    def _dispatch(self, method: str, *args) -> None:
        self._dispatcher.submit(method, *args)


def build_pipeline(cfg: PipelineConfig, paths: Paths) -> HeartRatePipeline:
    """Pipeline wired to the file history and configured relays."""
    history_path = cfg.history_file or paths.data_root / "heart_rate_history.txt"
    relays = build_relays(list(cfg.relay_targets), paths.interim_dir / "relay.ndjson")
    return HeartRatePipeline(cfg, history=FileHistoryStore(history_path), relays=relays)
