import json

import requests

from safesync.heart.events import RAISED, EmergencyEvent
from safesync.transport.relays import LogRelay, MemoryRelay, Relay, RelayDispatcher, WebhookRelay, build_relays


class _FailingSession:
    def __init__(self):
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json))
        raise requests.ConnectionError("phone unreachable")


class _Response:
    def raise_for_status(self):
        return None


class _RecordingSession:
    def __init__(self):
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json, timeout))
        return _Response()


def test_log_relay_writes_ndjson(tmp_path):
    path = tmp_path / "relay.ndjson"
    relay = LogRelay(path)
    relay.on_sample(72, 1000)
    relay.on_emergency(EmergencyEvent(kind=RAISED, bpm=150, timestamp=2000))
    lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert lines[0] == {"path": "/heartRate", "bpm": 72, "timestamp": 1000}
    assert lines[1]["path"] == "/emergency"
    assert lines[1]["kind"] == "raised"


def test_webhook_relay_posts_to_data_paths():
    session = _RecordingSession()
    relay = WebhookRelay("http://phone.local:8080/", timeout=1.5, session=session)
    relay.on_sample(80, 1234)
    url, payload, timeout = session.calls[0]
    assert url == "http://phone.local:8080/heartRate"
    assert payload == {"bpm": 80, "timestamp": 1234}
    assert timeout == 1.5


def test_webhook_relay_swallows_transport_errors():
    session = _FailingSession()
    relay = WebhookRelay("http://phone.local:8080", session=session)
    relay.on_emergency(EmergencyEvent(kind=RAISED, bpm=150, timestamp=0))
    assert session.calls[0][0].endswith("/emergency")


def test_build_relays_falls_back_to_log(tmp_path):
    relays = build_relays([("bogus",), ("carrier-pigeon", "x")], tmp_path / "default.ndjson")
    assert len(relays) == 1
    assert isinstance(relays[0], LogRelay)

    relays = build_relays([("webhook", "http://phone"), ("log", tmp_path / "a.ndjson")], tmp_path / "d.ndjson")
    assert [type(r) for r in relays] == [WebhookRelay, LogRelay]


def test_battery_level_goes_to_battery_path(tmp_path):
    session = _RecordingSession()
    WebhookRelay("http://phone.local:8080", session=session).on_battery(87, 5000)
    assert session.calls[0][:2] == ("http://phone.local:8080/batteryLevel", {"level": 87, "timestamp": 5000})

    path = tmp_path / "relay.ndjson"
    LogRelay(path).on_battery(-1, 6000)
    assert json.loads(path.read_text(encoding="utf-8")) == {"path": "/batteryLevel", "level": -1, "timestamp": 6000}


class _ExplodingRelay(Relay):
    def on_sample(self, bpm, timestamp):
        raise RuntimeError("boom")

    def on_emergency(self, event):
        raise RuntimeError("boom")


def test_dispatcher_delivers_in_order_past_failing_relays():
    memory = MemoryRelay()
    dispatcher = RelayDispatcher([_ExplodingRelay(), memory])
    for i in range(5):
        dispatcher.submit("on_sample", 60 + i, i * 1000)
    dispatcher.submit("on_emergency", EmergencyEvent(kind=RAISED, bpm=150, timestamp=9000))
    assert dispatcher.flush(timeout=5) is True
    assert [s["bpm"] for s in memory.samples] == [60, 61, 62, 63, 64]
    assert memory.emergencies[0].timestamp == 9000

    dispatcher.close()
    dispatcher.submit("on_sample", 99, 10_000)
    assert dispatcher.flush() is True
    assert len(memory.samples) == 5
