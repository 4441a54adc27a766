from safesync.heart.samples import Sample, SensorReading, SensorStatus


def test_legacy_sentinels_map_to_status():
    assert SensorReading.from_raw(-1).status is SensorStatus.PERMISSION_DENIED
    assert SensorReading.from_raw(-2).status is SensorStatus.UNAVAILABLE
    assert SensorReading.from_raw(0).status is SensorStatus.WAITING
    reading = SensorReading.from_raw(72, timestamp=1000)
    assert reading.is_reading
    assert (reading.bpm, reading.timestamp) == (72, 1000)


def test_only_readings_carry_bpm():
    assert SensorReading.from_raw(-1).bpm is None
    assert not SensorReading.from_raw(-2).is_reading


def test_sample_validity():
    assert Sample(timestamp=0, bpm=72).is_valid
    assert not Sample(timestamp=0, bpm=-1).is_valid
    assert Sample.from_dict({"timestamp": "5", "bpm": 70}) == Sample(timestamp=5, bpm=70)
