from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from pathlib import Path
from typing import Dict, List, Sequence
import json
import logging
import threading

import requests

from ..heart.events import EmergencyEvent

logger = logging.getLogger(__name__)

# Data paths the phone companion listens on.
HEART_RATE_PATH = "/heartRate"
EMERGENCY_PATH = "/emergency"
BATTERY_PATH = "/batteryLevel"

UNKNOWN_BATTERY_LEVEL = -1


class Relay:
    """Forwards readings, battery level and emergencies to the paired device."""

    def on_sample(self, bpm: int, timestamp: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def on_emergency(self, event: EmergencyEvent) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def on_battery(self, level: int, timestamp: int) -> None:
        return None


class MemoryRelay(Relay):
    def __init__(self):
        self.samples: List[Dict] = []
        self.emergencies: List[EmergencyEvent] = []
        self.batteries: List[Dict] = []

    def on_sample(self, bpm: int, timestamp: int) -> None:
        self.samples.append({"bpm": bpm, "timestamp": timestamp})

    def on_emergency(self, event: EmergencyEvent) -> None:
        self.emergencies.append(event)

    def on_battery(self, level: int, timestamp: int) -> None:
        self.batteries.append({"level": level, "timestamp": timestamp})


class LogRelay(Relay):
    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _write(self, path: str, payload: Dict) -> None:
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps({"path": path, **payload}) + "\n")

    def on_sample(self, bpm: int, timestamp: int) -> None:
        self._write(HEART_RATE_PATH, {"bpm": bpm, "timestamp": timestamp})

    def on_emergency(self, event: EmergencyEvent) -> None:
        self._write(EMERGENCY_PATH, event.to_dict())

    def on_battery(self, level: int, timestamp: int) -> None:
        self._write(BATTERY_PATH, {"level": level, "timestamp": timestamp})


class WebhookRelay(Relay):
    def __init__(self, base_url: str, timeout: float = 2.0, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, path: str, payload: Dict) -> None:
        try:
            resp = self.session.post(self.base_url + path, json=payload, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Relay POST %s failed: %s", path, e)

    def on_sample(self, bpm: int, timestamp: int) -> None:
        self._post(HEART_RATE_PATH, {"bpm": bpm, "timestamp": timestamp})

    def on_emergency(self, event: EmergencyEvent) -> None:
        self._post(EMERGENCY_PATH, event.to_dict())

    def on_battery(self, level: int, timestamp: int) -> None:
        self._post(BATTERY_PATH, {"level": level, "timestamp": timestamp})


class RelayDispatcher:
    """Delivers relay calls on one background worker, in submission order.

    Callers never wait on a relay: a slow or unreachable device only delays
    the worker. Exceptions raised by a relay are logged and dropped.
    """

    def __init__(self, relays: Sequence[Relay]):
        self.relays: List[Relay] = list(relays)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="safesync-relay")
        self._closed = False
        self._lock = threading.Lock()

    def submit(self, method: str, *args) -> None:
        if not self.relays:
            return
        with self._lock:
            if self._closed:
                logger.debug("Relay dispatcher closed, dropping %s", method)
                return
            self._executor.submit(self._deliver, method, args)

    def _deliver(self, method: str, args: tuple) -> None:
        for relay in self.relays:
            try:
                getattr(relay, method)(*args)
            except Exception as e:
                logger.warning("Relay %s.%s failed: %s", type(relay).__name__, method, e)

    def flush(self, timeout: float | None = None) -> bool:
        """Wait until everything submitted so far has been delivered."""
        with self._lock:
            if self._closed:
                return True
            marker = self._executor.submit(lambda: None)
        try:
            marker.result(timeout=timeout)
        except FutureTimeout:
            return False
        return True

    def close(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)


def build_relays(targets: List, log_default_path: Path) -> List[Relay]:
    relays: List[Relay] = []
    for t in targets:
        if not isinstance(t, (list, tuple)) or len(t) < 2:
            logger.warning("Ignoring malformed relay target: %r", t)
            continue
        kind, value = t[0], t[1]
        if kind == "log":
            relays.append(LogRelay(Path(value)))
        elif kind == "webhook":
            relays.append(WebhookRelay(str(value)))
        else:
            logger.warning("Unknown relay kind %r", kind)
    if not relays:
        relays.append(LogRelay(log_default_path))
    return relays
