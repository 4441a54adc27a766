import os
from dataclasses import dataclass, field
from pathlib import Path
import json

DEFAULT_CONFIG_NAME = "pipeline_config.json"


@dataclass(frozen=True)
class Paths:
    project_root: Path = Path(__file__).resolve().parents[2]
    data_root: Path = project_root / "data"
    interim_dir: Path = data_root / "interim"

    def ensure(self) -> None:
        for p in [self.data_root, self.interim_dir]:
            p.mkdir(parents=True, exist_ok=True)


@dataclass
class TriggerConfig:
    high_threshold_bpm: int = 140
    cooldown_ms: int = 30_000  # re-arm suppression after acknowledge
    countdown_seconds: int = 10  # SOS grace period before confirmation


@dataclass
class PipelineConfig:
    retention_ms: int = 24 * 3600 * 1000
    bin_size_ms: int = 5 * 60 * 1000
    chart_window_ms: int = 3600 * 1000
    ema_alpha: float = 0.3
    max_gap_ms: int = 15 * 60 * 1000
    bpm_timeout_ms: int = 30_000
    skip_repeated_bpm: bool = False
    history_file: Path | None = None
    relay_targets: tuple = ()  # e.g., (("webhook", "http://phone:8080"), ("log", "data/interim/relay.ndjson"))
    trigger: TriggerConfig = field(default_factory=TriggerConfig)

    def validate(self) -> None:
        if not 0.0 < self.ema_alpha <= 1.0:
            raise ValueError(f"ema_alpha must be in (0, 1], got {self.ema_alpha}")
        if self.bin_size_ms <= 0:
            raise ValueError(f"bin_size_ms must be positive, got {self.bin_size_ms}")
        if self.retention_ms <= 0:
            raise ValueError(f"retention_ms must be positive, got {self.retention_ms}")
        if self.max_gap_ms < 0:
            raise ValueError(f"max_gap_ms must be non-negative, got {self.max_gap_ms}")
        if self.trigger.cooldown_ms < 0:
            raise ValueError(f"cooldown_ms must be non-negative, got {self.trigger.cooldown_ms}")


def _config_path(paths: Paths) -> Path:
    override = os.getenv("SAFESYNC_CONFIG")
    if override:
        return Path(override)
    return paths.data_root / DEFAULT_CONFIG_NAME


def load_pipeline_config(paths: Paths | None = None) -> PipelineConfig:
    if paths is None:
        paths = Paths()
    paths.ensure()
    cfg_path = _config_path(paths)
    if not cfg_path.exists():
        return PipelineConfig()
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, ValueError):
        return PipelineConfig()

    trigger_payload = payload.get("trigger", {}) or {}
    history_file = payload.get("history_file")
    cfg = PipelineConfig(
        retention_ms=int(payload.get("retention_ms", 24 * 3600 * 1000)),
        bin_size_ms=int(payload.get("bin_size_ms", 5 * 60 * 1000)),
        chart_window_ms=int(payload.get("chart_window_ms", 3600 * 1000)),
        ema_alpha=float(payload.get("ema_alpha", 0.3)),
        max_gap_ms=int(payload.get("max_gap_ms", 15 * 60 * 1000)),
        bpm_timeout_ms=int(payload.get("bpm_timeout_ms", 30_000)),
        skip_repeated_bpm=bool(payload.get("skip_repeated_bpm", False)),
        history_file=Path(history_file) if history_file else None,
        relay_targets=tuple(tuple(t) for t in payload.get("relay_targets", ()) or ()),
        trigger=TriggerConfig(
            high_threshold_bpm=int(trigger_payload.get("high_threshold_bpm", 140)),
            cooldown_ms=int(trigger_payload.get("cooldown_ms", 30_000)),
            countdown_seconds=int(trigger_payload.get("countdown_seconds", 10)),
        ),
    )
    cfg.validate()
    return cfg
