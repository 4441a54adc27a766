from safesync.heart.countdown import EmergencyCountdown


def test_countdown_remaining_and_expiry():
    cd = EmergencyCountdown(seconds=10)
    assert cd.remaining_s(0) == 0
    cd.start(1000)
    assert cd.remaining_s(1000) == 10
    assert cd.remaining_s(1500) == 10
    assert cd.remaining_s(2000) == 9
    assert not cd.expired(10_999)
    assert cd.expired(11_000)
    cd.stop()
    assert not cd.running
    assert not cd.expired(20_000)


def test_countdown_start_does_not_reset_running_deadline():
    cd = EmergencyCountdown(seconds=10)
    cd.start(0)
    cd.start(5000)
    assert cd.expired(10_000)


def test_countdown_can_restart_after_stop():
    cd = EmergencyCountdown(seconds=3)
    cd.start(0)
    cd.stop()
    cd.start(5000)
    assert cd.remaining_s(5000) == 3
    assert cd.expired(8000)
