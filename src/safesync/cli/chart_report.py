import argparse
import json
import logging
from pathlib import Path

from ..config import load_pipeline_config
from ..heart.pipeline import HeartRatePipeline
from ..storage.history import FileHistoryStore


def main():
    parser = argparse.ArgumentParser(description="Bin and smooth a persisted heart-rate history for charting.")
    parser.add_argument("history_file", type=Path, nargs="?", default=Path("heart_rate_history.txt"))
    parser.add_argument("--output", type=Path, default=None, help="Write JSON here instead of stdout")
    parser.add_argument("--window-ms", type=int, default=None, help="Chart window length (default from config)")
    parser.add_argument("--bin-size-ms", type=int, default=None, help="Bucket width (default from config)")
    parser.add_argument("--now", type=int, default=None, help="Window end in epoch ms; defaults to the latest sample")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    cfg = load_pipeline_config()
    pipeline = HeartRatePipeline(cfg, history=FileHistoryStore(args.history_file))
    samples = pipeline.history.load_all()
    pipeline.store.replace(samples)

    now = args.now
    if now is None:
        latest = pipeline.latest()
        if latest is None:
            print(f"No samples in {args.history_file}")
            return
        now = latest.timestamp

    series = pipeline.chart(window_ms=args.window_ms, now=now, bin_size_ms=args.bin_size_ms)
    text = json.dumps(series.to_dict(), indent=2)
    if args.output is None:
        print(text)
        return
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(text, encoding="utf-8")
    print(f"Wrote {len(series.bins)} buckets in {len(series.segments)} segments to {args.output}")


if __name__ == "__main__":
    main()
