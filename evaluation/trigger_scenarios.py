"""Scenario-based evaluation for the emergency trigger.

Replays a recorded or synthetic stream of sensor readings (and user actions)
through the pipeline and compares the emergencies it raises with labelled
expectations. Larger timelines than the unit tests can be stored as NDJSON.

Readings file, one object per line::

    {"timestamp": 1000, "bpm": 150}
    {"timestamp": 1200, "action": "cancel"}
    {"timestamp": 12000, "action": "tick"}

Labels file, one expected raise per line::

    {"timestamp": 1000}
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import pathlib
from typing import Iterable, List

from safesync.config import PipelineConfig, TriggerConfig
from safesync.heart.events import CANCELLED, CONFIRMED, RAISED
from safesync.heart.pipeline import HeartRatePipeline
from safesync.heart.samples import SensorReading
from safesync.transport.relays import MemoryRelay


@dataclasses.dataclass
class ScenarioConfig:
    """Config for trigger scenario evaluation.

    Attributes
    ----------
    readings_path: NDJSON of readings and actions, in time order.
    labels_path: NDJSON of expected raise timestamps.
    trigger: keyword arguments for TriggerConfig.
    tolerance_ms: how far a raise may be from its label and still match.
    """

    readings_path: pathlib.Path
    labels_path: pathlib.Path
    trigger: dict = dataclasses.field(default_factory=dict)
    tolerance_ms: int = 0


def load_config(path: str | pathlib.Path) -> ScenarioConfig:
    data = json.loads(pathlib.Path(path).read_text())
    return ScenarioConfig(
        readings_path=pathlib.Path(data["readings_path"]),
        labels_path=pathlib.Path(data["labels_path"]),
        trigger=data.get("trigger", {}) or {},
        tolerance_ms=int(data.get("tolerance_ms", 0)),
    )


def _iter_json_lines(path: pathlib.Path) -> Iterable[dict]:
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            yield json.loads(line)


def _build_trigger_config(payload: dict) -> TriggerConfig:
    allowed = {"high_threshold_bpm", "cooldown_ms", "countdown_seconds"}
    return TriggerConfig(**{k: v for k, v in payload.items() if k in allowed})


def replay(pipeline: HeartRatePipeline, records: Iterable[dict]) -> None:
    for obj in records:
        ts = int(obj["timestamp"])
        action = obj.get("action")
        if action == "cancel":
            pipeline.acknowledge(ts, reason=CANCELLED)
        elif action == "confirm":
            pipeline.acknowledge(ts, reason=CONFIRMED)
        elif action == "tick":
            pipeline.tick(ts)
        elif action == "sos":
            pipeline.request_emergency(ts)
        elif "bpm" in obj:
            pipeline.on_reading(SensorReading.from_raw(int(obj["bpm"]), ts))


def evaluate(config: ScenarioConfig) -> dict:
    relay = MemoryRelay()
    pipeline = HeartRatePipeline(
        PipelineConfig(trigger=_build_trigger_config(config.trigger)),
        relays=[relay],
    )
    replay(pipeline, _iter_json_lines(config.readings_path))
    pipeline.close()
    labels = [int(obj["timestamp"]) for obj in _iter_json_lines(config.labels_path)]

    raised = [e.timestamp for e in relay.emergencies if e.kind == RAISED]
    unmatched = list(raised)
    tp = 0
    for label_ts in labels:
        match = next((ts for ts in unmatched if abs(ts - label_ts) <= config.tolerance_ms), None)
        if match is not None:
            unmatched.remove(match)
            tp += 1
    fn = len(labels) - tp
    fp = len(unmatched)

    return {
        "num_labels": len(labels),
        "num_samples": len(relay.samples),
        "num_raised": len(raised),
        "true_positives": tp,
        "false_negatives": fn,
        "false_positives": fp,
        "precision": float(tp / (tp + fp)) if (tp + fp) > 0 else 0.0,
        "recall": float(tp / (tp + fn)) if (tp + fn) > 0 else 0.0,
    }


def main(argv: List[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="SafeSync emergency trigger scenario benchmark")
    parser.add_argument("--config", required=True, help="Path to JSON config for the trigger benchmark")
    parser.add_argument("--output", required=True, help="Path to JSON file for results")
    args = parser.parse_args(argv)

    cfg = load_config(args.config)
    results = evaluate(cfg)

    output_path = pathlib.Path(args.output)
    output_path.write_text(json.dumps(results, indent=2), encoding="utf-8")


if __name__ == "__main__":  # pragma: no cover
    main()
