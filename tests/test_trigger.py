from safesync.config import TriggerConfig
from safesync.heart.trigger import AnomalyTrigger


def _trigger() -> AnomalyTrigger:
    return AnomalyTrigger(TriggerConfig(high_threshold_bpm=140, cooldown_ms=30_000))


def test_raise_absorb_acknowledge_and_cooldown():
    trig = _trigger()
    assert trig.feed(150, 0) is True
    assert trig.is_active()

    assert trig.feed(160, 100) is False
    assert trig.is_active()

    assert trig.acknowledge(200) is True
    assert not trig.is_active()
    assert trig.state.last_cleared_at == 200

    assert trig.feed(150, 10_000) is False
    assert not trig.is_active()

    assert trig.feed(150, 31_000) is True
    assert trig.is_active()


def test_normal_bpm_never_clears_active_state():
    trig = _trigger()
    trig.feed(150, 0)
    for t in range(1, 20):
        trig.feed(70, t * 1000)
    assert trig.is_active()


def test_threshold_is_exclusive():
    trig = _trigger()
    assert trig.feed(140, 0) is False
    assert not trig.is_active()


def test_non_positive_bpm_is_ignored():
    trig = _trigger()
    for bpm in (0, -1, -2):
        assert trig.feed(bpm, 0) is False
    assert not trig.is_active()
    assert trig.state.last_cleared_at is None


def test_acknowledge_while_normal_is_noop():
    trig = _trigger()
    assert trig.acknowledge(500) is False
    assert trig.state.last_cleared_at is None
    assert trig.feed(150, 600) is True


def test_force_raises_once():
    trig = _trigger()
    assert trig.force() is True
    assert trig.force() is False
    assert trig.is_active()
