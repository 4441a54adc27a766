from safesync.heart.samples import Sample
from safesync.heart.store import TimeSeriesStore
from safesync.storage.history import FileHistoryStore, MemoryHistoryStore, decode_history, encode_history


def test_reference_format():
    samples = [Sample(timestamp=1000, bpm=72), Sample(timestamp=2000, bpm=75)]
    assert encode_history(samples) == "1000,72;2000,75"


def test_malformed_entries_are_skipped_individually():
    payload = "1000,72;garbage;2000,abc;3000,80,1;;4000,81"
    got = decode_history(payload)
    assert got == [Sample(timestamp=1000, bpm=72), Sample(timestamp=4000, bpm=81)]


def test_empty_payload():
    assert decode_history("") == []


def test_store_snapshot_roundtrip_preserves_order():
    store = TimeSeriesStore()
    for ts, bpm in [(3000, 90), (1000, 70), (2000, 80), (2000, 81)]:
        store.append(Sample(timestamp=ts, bpm=bpm))
    history = MemoryHistoryStore()
    history.save_all(store.snapshot())
    assert tuple(history.load_all()) == store.snapshot()


def test_file_history_roundtrip(tmp_path):
    path = tmp_path / "nested" / "history.txt"
    history = FileHistoryStore(path)
    assert history.load_all() == []

    samples = [Sample(timestamp=1000 + i * 5000, bpm=60 + i) for i in range(5)]
    history.save_all(samples)
    assert path.read_text(encoding="utf-8").count(";") == 4
    assert FileHistoryStore(path).load_all() == samples


def test_file_with_undecodable_bytes_keeps_valid_entries(tmp_path):
    path = tmp_path / "history.txt"
    path.write_bytes(b"1000,72;\xff\xfe,1;2000,75")
    got = FileHistoryStore(path).load_all()
    assert got == [Sample(timestamp=1000, bpm=72), Sample(timestamp=2000, bpm=75)]
