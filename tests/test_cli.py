import json
import sys

from safesync.cli import chart_report, prune_history
from safesync.storage.history import FileHistoryStore


def test_chart_report_writes_series(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("SAFESYNC_CONFIG", str(tmp_path / "missing.json"))
    history = tmp_path / "history.txt"
    history.write_text("0,60;10000,64;600000,70", encoding="utf-8")
    out = tmp_path / "chart.json"
    monkeypatch.setattr(
        sys,
        "argv",
        ["chart_report", str(history), "--output", str(out), "--window-ms", "600000", "--bin-size-ms", "60000"],
    )
    chart_report.main()
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert [b["median"] for b in payload["bins"]] == [62, 70]
    assert payload["segments"] == [[0, 2]]
    assert "Wrote 2 buckets" in capsys.readouterr().out


def test_prune_history_rewrites_file(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("SAFESYNC_CONFIG", str(tmp_path / "missing.json"))
    history = tmp_path / "history.txt"
    history.write_text("1000,60;oops;50000,62;90000,64", encoding="utf-8")
    monkeypatch.setattr(
        sys,
        "argv",
        ["prune_history", str(history), "--retention-ms", "60000", "--now", "100000"],
    )
    prune_history.main()
    assert history.read_text(encoding="utf-8") == "50000,62;90000,64"
    assert len(FileHistoryStore(history).load_all()) == 2
    assert "Kept 2 of 3" in capsys.readouterr().out
