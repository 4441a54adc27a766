from safesync.heart.samples import Sample
from safesync.heart.store import TimeSeriesStore


def _store(*pairs) -> TimeSeriesStore:
    store = TimeSeriesStore()
    for ts, bpm in pairs:
        store.append(Sample(timestamp=ts, bpm=bpm))
    return store


def test_query_is_inclusive_on_both_ends():
    store = _store((1000, 60), (2000, 61), (3000, 62), (4000, 63))
    got = store.query(2000, 3000)
    assert [s.timestamp for s in got] == [2000, 3000]


def test_prune_removes_strictly_older_samples():
    store = _store((1000, 60), (2000, 61), (3000, 62))
    assert store.prune(2000) is True
    assert [s.timestamp for s in store.snapshot()] == [2000, 3000]


def test_prune_is_idempotent():
    store = _store((1000, 60), (2000, 61), (3000, 62))
    store.prune(2500)
    once = store.snapshot()
    assert store.prune(2500) is False
    assert store.snapshot() == once


def test_prune_handles_out_of_order_and_duplicate_timestamps():
    store = _store((3000, 70), (1000, 60), (2000, 65), (1000, 61), (4000, 72))
    store.prune(2000)
    assert [(s.timestamp, s.bpm) for s in store.snapshot()] == [(3000, 70), (2000, 65), (4000, 72)]


def test_store_accepts_repeated_bpm():
    store = _store((1000, 72), (2000, 72))
    assert len(store) == 2
    assert store.latest() == Sample(timestamp=2000, bpm=72)


def test_snapshot_is_an_immutable_copy():
    store = _store((1000, 60))
    snap = store.snapshot()
    store.append(Sample(timestamp=2000, bpm=61))
    assert isinstance(snap, tuple)
    assert len(snap) == 1
