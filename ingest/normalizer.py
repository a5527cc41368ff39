"""Normalize loosely structured search results into :class:`NormalizedEvent`.

Records coming back from the events search engine describe dates, times and
addresses in whatever shape the indexed page used.  Everything in this module
is best effort: a field that cannot be resolved is left empty and no
exception escapes :func:`normalize`.
"""
from __future__ import annotations

import enum
import logging
import re
from typing import Any, Iterable, List, Optional, Tuple

from .schemas import ClockTime, MonthDay, NormalizedEvent

logger = logging.getLogger(__name__)

CANONICAL_MONTHS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)

# Locale tokens (lower case) -> canonical month token.  Spanish "mar" also
# means Tuesday; it always resolves to March.
MONTH_TOKENS = {
    # English
    "jan": "JAN", "january": "JAN",
    "feb": "FEB", "february": "FEB",
    "mar": "MAR", "march": "MAR",
    "apr": "APR", "april": "APR",
    "may": "MAY",
    "jun": "JUN", "june": "JUN",
    "jul": "JUL", "july": "JUL",
    "aug": "AUG", "august": "AUG",
    "sep": "SEP", "sept": "SEP", "september": "SEP",
    "oct": "OCT", "october": "OCT",
    "nov": "NOV", "november": "NOV",
    "dec": "DEC", "december": "DEC",
    # Spanish
    "ene": "JAN", "enero": "JAN",
    "febrero": "FEB",
    "marzo": "MAR",
    "abr": "APR", "abril": "APR",
    "mayo": "MAY",
    "junio": "JUN",
    "julio": "JUL",
    "ago": "AUG", "agosto": "AUG",
    "septiembre": "SEP", "setiembre": "SEP",
    "octubre": "OCT",
    "noviembre": "NOV",
    "dic": "DEC", "diciembre": "DEC",
}

TIMEZONES = ("CST", "CDT", "EST", "EDT", "PST", "PDT", "MST", "MDT")

_TOKEN_SPLIT_RE = re.compile(r"[\W_]+")
# "9", "09", "1st", "22nd"; ASCII digits only
_DAY_RE = re.compile(r"([0-9]{1,2})(?:st|nd|rd|th|º)?", re.I)

_MERIDIEM = r"([ap])\.?\s?m\b\.?"
_CLOCK = rf"(?<![\d:])(\d{{1,2}})(?::(\d{{2}}))?\s*(?:{_MERIDIEM})?"
_TIME_RANGE_RE = re.compile(rf"{_CLOCK}\s*[-–—]\s*{_CLOCK}", re.I)
_TIME_12H_RE = re.compile(rf"(?<![\d:])(\d{{1,2}})(?::(\d{{2}}))?\s*{_MERIDIEM}", re.I)
_TIME_24H_RE = re.compile(r"(?<![\d:])(\d{1,2}):(\d{2})(?!\d)")
_TIMEZONE_RE = re.compile(r"\b(" + "|".join(TIMEZONES) + r")\b")
_TIMEZONE_AFTER_RE = re.compile(r"\s*(" + "|".join(TIMEZONES) + r")\b")

# "Boerne, TX 78006" -> city, region, postal code
_REGION_RE = re.compile(r"^(.+?),\s*([A-Z]{2})\b(?:\s+(\d{5})\b)?")


class RangePolicy(enum.Enum):
    """How month/day pairs found in the free-text description are trusted.

    The search engine's structured ``start_date``/``end_date`` fields are
    sometimes inverted for multi-day events while the ``when`` text is not,
    so by default a free-text range replaces the structured fields.
    """

    FREE_TEXT_OVERRIDES = "free_text_overrides"
    STRUCTURED_FIRST = "structured_first"


def tokenize(text: str) -> List[str]:
    """Split ``text`` on every non-alphanumeric boundary."""
    if not text:
        return []
    return [tok for tok in _TOKEN_SPLIT_RE.split(text) if tok]


def _month_of(token: str) -> Optional[str]:
    return MONTH_TOKENS.get(token.lower())


def _day_of(token: str) -> Optional[int]:
    match = _DAY_RE.fullmatch(token)
    if match:
        day = int(match.group(1))
        if 1 <= day <= 31:
            return day
    return None


def normalize_month_day(text: Optional[str]) -> Optional[MonthDay]:
    """Return the first month token in ``text`` paired with the next day.

    >>> normalize_month_day("Sat, Nov 9")
    MonthDay(month='NOV', day=9)

    The day search runs to the end of the text; a month with no valid day
    after it comes back with ``day=None``.
    """
    tokens = tokenize(text or "")
    for pos, token in enumerate(tokens):
        month = _month_of(token)
        if month is None:
            continue
        for following in tokens[pos + 1:]:
            day = _day_of(following)
            if day is not None:
                return MonthDay(month, day)
        return MonthDay(month)
    return None


def extract_range(text: Optional[str]) -> List[MonthDay]:
    """Return every month/day pair in ``text`` in order of appearance."""
    tokens = tokenize(text or "")
    pairs: List[MonthDay] = []
    pos = 0
    while pos < len(tokens):
        month = _month_of(tokens[pos])
        pos += 1
        if month is None:
            continue
        while pos < len(tokens) and _month_of(tokens[pos]) is None:
            day = _day_of(tokens[pos])
            pos += 1
            if day is not None:
                pairs.append(MonthDay(month, day))
                break
    return pairs


def _to_24h(hour: str, minute: Optional[str], marker: Optional[str]) -> Optional[ClockTime]:
    h = int(hour)
    m = int(minute) if minute else 0
    if m > 59:
        return None
    if marker:
        if not 1 <= h <= 12:
            return None
        h = h % 12 + (12 if marker.lower() == "p" else 0)
    elif h > 23:
        return None
    return ClockTime(h, m)


def _flip(marker: str) -> str:
    return "a" if marker.lower() == "p" else "p"


def _resolve_pair(match: re.Match) -> Tuple[Optional[ClockTime], Optional[ClockTime]]:
    h1, m1, mer1, h2, m2, mer2 = match.groups()
    start_marker = mer1 or mer2
    end_marker = mer2 or mer1
    start = _to_24h(h1, m1, start_marker)
    end = _to_24h(h2, m2, end_marker)
    if start and end and (start.hour, start.minute) > (end.hour, end.minute):
        # "11 - 1 PM": the borrowed marker was the wrong half of the day
        if not mer1:
            start = _to_24h(h1, m1, _flip(start_marker))
        elif not mer2:
            end = _to_24h(h2, m2, _flip(end_marker))
    return start, end


def _timezone_after(text: str, pos: int) -> str:
    match = _TIMEZONE_AFTER_RE.match(text, pos)
    return match.group(1) if match else ""


def parse_time_range(text: Optional[str]) -> Tuple[Optional[ClockTime], Optional[ClockTime], str]:
    """Parse ``6 - 9 PM CST`` style text into start, end and zone.

    A lone ``7 PM`` gives an empty end time.  Text with no 12-hour clock
    expression gives ``(None, None, "")``.
    """
    if not text:
        return None, None, ""
    for match in _TIME_RANGE_RE.finditer(text):
        if not (match.group(3) or match.group(6)):
            continue
        start, end = _resolve_pair(match)
        if start and end:
            return start, end, _timezone_after(text, match.end())
    match = _TIME_12H_RE.search(text)
    if match:
        start = _to_24h(*match.groups())
        if start:
            return start, None, _timezone_after(text, match.end())
    return None, None, ""


def parse_clock(text: Optional[str]) -> Optional[ClockTime]:
    """Parse a single clock expression such as ``6:30 PM`` or ``18:30``."""
    if not text:
        return None
    match = _TIME_12H_RE.search(text)
    if match:
        return _to_24h(*match.groups())
    match = _TIME_24H_RE.search(text)
    if match:
        return _to_24h(match.group(1), match.group(2), None)
    return None


def _find_timezone(*texts: str) -> str:
    for text in texts:
        match = _TIMEZONE_RE.search(text or "")
        if match:
            return match.group(1)
    return ""


def parse_address(address: Any, venue: Any = None) -> Tuple[str, str, str, str]:
    """Split a raw address into ``(line, city, region, postal_code)``.

    ``address`` may be a string, a list of address lines or missing, in which
    case ``venue["address"]`` is used.  The first line becomes the address
    line; city and region come from the first line of the form ``text, XX``
    which need not be the first line.
    """
    if isinstance(address, str):
        lines = [address]
    elif isinstance(address, (list, tuple)):
        lines = [line for line in address if isinstance(line, str)]
    else:
        lines = []
    lines = [line.strip() for line in lines if line.strip()]

    if not lines and isinstance(venue, dict):
        venue_address = venue.get("address")
        if isinstance(venue_address, str) and venue_address.strip():
            lines = [venue_address.strip()]

    if not lines:
        return "", "", "", ""

    city = region = postal_code = ""
    for line in lines:
        match = _REGION_RE.search(line)
        if match:
            city = match.group(1).strip()
            region = match.group(2)
            postal_code = match.group(3) or ""
            break
    return lines[0], city, region, postal_code


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def resolve_dates(
    start_text: str,
    end_text: str,
    when_raw: str,
    range_policy: RangePolicy = RangePolicy.FREE_TEXT_OVERRIDES,
) -> Tuple[Optional[MonthDay], Optional[MonthDay]]:
    """Combine structured date fields with pairs found in the free text."""
    start = normalize_month_day(start_text)
    end = normalize_month_day(end_text)

    pairs = extract_range(when_raw)
    if len(pairs) >= 2 and range_policy is RangePolicy.FREE_TEXT_OVERRIDES:
        start, end = pairs[0], pairs[-1]
    elif pairs:
        start = start or pairs[0]
        end = end or pairs[-1]

    if start is None:
        start = end or normalize_month_day(when_raw)
    if end is None:
        end = start
    return start, end


def normalize(
    raw: Any,
    range_policy: RangePolicy = RangePolicy.FREE_TEXT_OVERRIDES,
) -> NormalizedEvent:
    """Reduce one raw search record to a :class:`NormalizedEvent`."""
    if not isinstance(raw, dict):
        logger.debug("Ignoring non-dict record: %r", raw)
        raw = {}
    date_info = raw.get("date")
    if not isinstance(date_info, dict):
        date_info = {}

    when_raw = _text(date_info.get("when"))
    start_date, end_date = resolve_dates(
        _text(date_info.get("start_date")),
        _text(date_info.get("end_date")),
        when_raw,
        range_policy,
    )

    start_time_text = _text(date_info.get("start_time"))
    end_time_text = _text(date_info.get("end_time"))
    start_time = parse_clock(start_time_text)
    end_time = parse_clock(end_time_text)
    timezone = ""
    if start_time is None or end_time is None:
        text_start, text_end, timezone = parse_time_range(when_raw)
        start_time = start_time or text_start
        end_time = end_time or text_end
    if not timezone and (start_time or end_time):
        timezone = _find_timezone(when_raw, start_time_text, end_time_text)

    line, city, region, postal_code = parse_address(raw.get("address"), raw.get("venue"))

    return NormalizedEvent(
        title=_text(raw.get("title")),
        start_date=start_date,
        end_date=end_date,
        start_time=start_time,
        end_time=end_time,
        timezone=timezone,
        when_raw=when_raw,
        address_line=line,
        city=city,
        region=region,
        postal_code=postal_code,
        link=_text(raw.get("link")),
    )


def normalize_all(
    raws: Iterable[Any],
    range_policy: RangePolicy = RangePolicy.FREE_TEXT_OVERRIDES,
) -> List[NormalizedEvent]:
    """Normalize every record, one output per input."""
    return [normalize(raw, range_policy) for raw in raws]
