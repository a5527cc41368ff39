"""CSV export of normalized events."""
from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Iterable, List, Optional

from ingest.schemas import ClockTime, NormalizedEvent

COLUMNS = [
    "idx",
    "title",
    "start_date",
    "start_time",
    "end_date",
    "end_time",
    "when",
    "address",
    "city",
    "state",
    "zip",
    "link",
]


def format_time(value: Optional[ClockTime], timezone: str = "") -> str:
    """Return ``6:00 PM CST`` style text, or an empty string."""
    if value is None:
        return ""
    text = value.format_12h()
    return f"{text} {timezone}" if timezone else text


def event_row(index: int, event: NormalizedEvent) -> List[str]:
    """Return the CSV row for ``event``; ``index`` is 1-based."""
    return [
        str(index),
        event.title,
        str(event.start_date) if event.start_date else "",
        format_time(event.start_time, event.timezone),
        str(event.end_date) if event.end_date else "",
        format_time(event.end_time, event.timezone),
        event.when_raw,
        event.address_line,
        event.city,
        event.region,
        event.postal_code,
        event.link,
    ]


def render_csv(events: Iterable[NormalizedEvent]) -> str:
    """Return the CSV text for ``events`` including the header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(COLUMNS)
    for index, event in enumerate(events, start=1):
        writer.writerow(event_row(index, event))
    return buffer.getvalue()


def write_csv(events: Iterable[NormalizedEvent], path: str | Path) -> Path:
    """Write ``events`` as CSV to ``path``, creating parent directories."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(render_csv(events), encoding="utf-8", newline="")
    return out
