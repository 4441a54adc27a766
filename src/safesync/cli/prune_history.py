import argparse
import logging
from pathlib import Path

from ..config import load_pipeline_config
from ..heart.pipeline import HeartRatePipeline
from ..storage.history import FileHistoryStore


def main():
    parser = argparse.ArgumentParser(description="Drop heart-rate history entries older than the retention window.")
    parser.add_argument("history_file", type=Path, nargs="?", default=Path("heart_rate_history.txt"))
    parser.add_argument("--retention-ms", type=int, default=None, help="Override configured retention")
    parser.add_argument("--now", type=int, default=None, help="Override current time in epoch ms")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    cfg = load_pipeline_config()
    if args.retention_ms is not None:
        cfg.retention_ms = args.retention_ms
    history = FileHistoryStore(args.history_file)
    pipeline = HeartRatePipeline(cfg, history=history)
    before = len(history.load_all())
    kept = pipeline.initialize(now=args.now)
    # rewriting also drops malformed entries skipped during load
    pipeline.save()
    print(f"Kept {kept} of {before} samples in {args.history_file}")


if __name__ == "__main__":
    main()
