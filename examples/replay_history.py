"""Replay a saved watch history file into a running SafeSync API.

Useful for seeding the chart endpoint from a history exported off the watch.

Requires:
- HISTORY_FILE: semicolon-delimited `timestamp,bpm` history (default heart_rate_history.txt)
- API_URL: API base URL (default http://localhost:8000)
- SAFESYNC_API_TOKEN: optional bearer token
"""

import os
from pathlib import Path

import requests

from safesync.storage.history import FileHistoryStore

BATCH_SIZE = 500


def forward(samples, api_url: str, token: str | None):
    if not samples:
        return 0
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    sent = 0
    for i in range(0, len(samples), BATCH_SIZE):
        payload = [s.to_dict() for s in samples[i : i + BATCH_SIZE]]
        resp = requests.post(api_url.rstrip("/") + "/samples", json=payload, headers=headers, timeout=10)
        resp.raise_for_status()
        sent += len(payload)
    return sent


def main():
    history_file = Path(os.getenv("HISTORY_FILE", "heart_rate_history.txt"))
    api_url = os.getenv("API_URL", "http://localhost:8000")
    token = os.getenv("SAFESYNC_API_TOKEN", "")
    if not history_file.exists():
        raise SystemExit(f"History file not found: {history_file}")
    samples = FileHistoryStore(history_file).load_all()
    sent = forward(samples, api_url, token or None)
    print(f"Replayed {sent} samples from {history_file} to {api_url}")


if __name__ == "__main__":
    main()
