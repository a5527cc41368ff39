"""Fetch events for a search query and write them to CSV."""
from __future__ import annotations

import argparse
import os
import logging
from pathlib import Path

from exporters.tabular import write_csv
from ingest.normalizer import normalize_all
from ingest.serpapi_client import fetch_events

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_QUERY = "events in Boerne, TX"

logger = logging.getLogger(__name__)
if os.getenv("EVENTS_DEBUG"):
    logging.basicConfig(level=logging.INFO, format="%(message)s")


def run(query: str, out: str | Path) -> Path:
    """Fetch ``query`` results, normalize them and write the CSV to ``out``."""
    print(f'Fetching events for query: "{query}"')
    raw_events = fetch_events(query)
    print(f"Found {len(raw_events)} events")
    path = write_csv(normalize_all(raw_events), out)
    print(f"CSV written to {path}")
    return path


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export search events to CSV")
    parser.add_argument("--query", default=DEFAULT_QUERY)
    parser.add_argument("--out", default=str(DATA_DIR / "boerne-events.csv"))
    args = parser.parse_args(argv)

    try:
        run(args.query, args.out)
    except Exception as exc:
        print("❌ Failed to export events:", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
