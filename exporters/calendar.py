"""Render normalized events as an iCalendar document with :mod:`ics`.

Every event is written as an all-day event.  ``DTEND`` is exclusive, so it
is one day after the last day of the event.  Events whose dates cannot be
turned into real calendar dates are left out of the document and recorded
in :attr:`CalendarDocument.skipped`.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from ics import Calendar, Event

from ingest.normalizer import CANONICAL_MONTHS
from ingest.schemas import MonthDay, NormalizedEvent

logger = logging.getLogger(__name__)

PRODID = "-//serpapi-events//EN"
UID_DOMAIN = "serpapi-events"

_YEAR_RE = re.compile(r"\b(20\d{2})\b")
_UID_STRIP_RE = re.compile(r"[^A-Za-z0-9]+")
_LINE_BREAK_RE = re.compile(r"\r?\n")


@dataclass(frozen=True)
class SkippedEvent:
    """An input event that produced no calendar entry."""

    index: int
    title: str
    kind: str = "UnresolvableDate"


@dataclass
class CalendarDocument:
    """Calendar events in input order plus the inputs that were skipped."""

    events: List[Event] = field(default_factory=list)
    skipped: List[SkippedEvent] = field(default_factory=list)

    def to_calendar(self) -> Calendar:
        return Calendar(events=self.events, creator=PRODID)

    def serialize(self) -> str:
        """Return the document as CRLF terminated text."""
        lines = _LINE_BREAK_RE.split(str(self.to_calendar()).strip("\r\n"))
        return "\r\n".join(lines) + "\r\n"


def resolve_year(when_raw: str, reference_year: int) -> int:
    """Return the first ``20xx`` year in ``when_raw`` or ``reference_year``."""
    match = _YEAR_RE.search(when_raw or "")
    return int(match.group(1)) if match else reference_year


def to_date(month_day: Optional[MonthDay], year: int) -> Optional[date]:
    """Return a real date for ``month_day`` in ``year`` or ``None``."""
    if month_day is None or month_day.day is None:
        return None
    if month_day.month not in CANONICAL_MONTHS:
        return None
    try:
        return date(year, CANONICAL_MONTHS.index(month_day.month) + 1, month_day.day)
    except ValueError:
        return None


def make_uid(index: int, title: str) -> str:
    """Return a UID built from the event position and its title."""
    return f"{index}-{_UID_STRIP_RE.sub('', title or '')}@{UID_DOMAIN}"


def build_location(event: NormalizedEvent) -> str:
    bits = [event.address_line, event.city, event.region]
    return ", ".join(bit for bit in bits if bit)


def build_description(event: NormalizedEvent) -> str:
    parts = []
    if event.when_raw:
        parts.append(f"When: {event.when_raw}")
    if event.link:
        parts.append(f"Link: {event.link}")
    return "\n".join(parts)


def resolve_dates(event: NormalizedEvent, year: int) -> Optional[tuple]:
    """Return ``(start, exclusive_end)`` for ``event`` or ``None``.

    An end that falls before the start rolls into the next year when its
    month is earlier (``Dec 30 - Jan 2``); otherwise it is clamped to the
    start.
    """
    start = to_date(event.start_date, year)
    end_date = event.end_date or event.start_date
    last_day = to_date(end_date, year)
    if start is None or last_day is None:
        return None
    if last_day < start:
        if CANONICAL_MONTHS.index(end_date.month) < CANONICAL_MONTHS.index(event.start_date.month):
            last_day = to_date(end_date, year + 1)
            if last_day is None:
                return None
        else:
            last_day = start
    return start, last_day + timedelta(days=1)


def build_event(index: int, event: NormalizedEvent, start: date, end: date) -> Event:
    """Return an all-day :class:`ics.Event` spanning ``start`` up to ``end``."""
    ics_event = Event(
        name=event.title,
        begin=start,
        uid=make_uid(index, event.title),
        created=datetime(start.year, start.month, start.day, tzinfo=timezone.utc),
        transparent=True,
    )
    ics_event.make_all_day()
    # make_all_day drops the end of a one-day event; DTEND is always written
    ics_event.end = end
    location = build_location(event)
    if location:
        ics_event.location = location
    description = build_description(event)
    if description:
        ics_event.description = description
    return ics_event


def emit_calendar(
    events: Iterable[NormalizedEvent],
    reference_year: Optional[int] = None,
) -> CalendarDocument:
    """Build a :class:`CalendarDocument` from normalized events.

    Args:
        events: Normalized events in input order.
        reference_year: Year used when an event's free text carries no
            ``20xx`` year.  Defaults to the current year.

    Returns:
        The document.  Events without a usable start or end date are listed
        in ``skipped`` instead of raising.
    """
    if reference_year is None:
        reference_year = date.today().year

    document = CalendarDocument()
    for index, event in enumerate(events):
        dates = resolve_dates(event, resolve_year(event.when_raw, reference_year))
        if dates is None:
            logger.info("Skipping event %d (%s): no usable date", index, event.title)
            document.skipped.append(SkippedEvent(index, event.title))
            continue
        document.events.append(build_event(index, event, *dates))
    return document


def write_calendar(document: CalendarDocument, path: str | Path) -> Path:
    """Write ``document`` to ``path``, creating parent directories."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(document.serialize().encode("utf-8"))
    return out
