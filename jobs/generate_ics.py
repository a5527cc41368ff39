"""Fetch events for a search query and write them as an .ics calendar."""
from __future__ import annotations

import argparse
import os
import logging
from pathlib import Path

from exporters.calendar import CalendarDocument, emit_calendar, write_calendar
from ingest.normalizer import normalize_all
from ingest.serpapi_client import fetch_events

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_QUERY = "events in Boerne, TX"

logger = logging.getLogger(__name__)
if os.getenv("EVENTS_DEBUG"):
    logging.basicConfig(level=logging.INFO, format="%(message)s")


def run(query: str, out: str | Path, year: int | None = None) -> CalendarDocument:
    """Fetch, normalize and emit ``query`` results to the calendar at ``out``."""
    raw_events = fetch_events(query)
    logger.info("Fetched %d raw event(s)", len(raw_events))
    document = emit_calendar(normalize_all(raw_events), reference_year=year)
    path = write_calendar(document, out)
    if document.skipped:
        print(f"Skipped {len(document.skipped)} event(s) without a usable date")
        for skipped in document.skipped:
            logger.info("  #%d %s", skipped.index, skipped.title)
    print(f"ICS written to {path} ({len(document.events)} events)")
    return document


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export search events to iCalendar")
    parser.add_argument("--query", default=DEFAULT_QUERY)
    parser.add_argument("--out", default=str(DATA_DIR / "boerne-events.ics"))
    parser.add_argument(
        "--year",
        type=int,
        default=None,
        help="Year for dates without one in the text (default: current year)",
    )
    args = parser.parse_args(argv)

    try:
        run(args.query, args.out, args.year)
    except Exception as exc:
        print("❌ Failed to generate calendar:", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
