"""Shared data models for the event normalizer."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MonthDay:
    """A month token with an optional day, no year."""

    month: str
    day: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.month} {self.day}" if self.day else self.month


@dataclass(frozen=True)
class ClockTime:
    """24-hour wall clock time."""

    hour: int
    minute: int = 0

    def format_12h(self) -> str:
        """Return ``6:00 PM`` style text."""
        hour = self.hour % 12 or 12
        suffix = "AM" if self.hour < 12 else "PM"
        return f"{hour}:{self.minute:02d} {suffix}"


@dataclass(frozen=True)
class NormalizedEvent:
    """Event reduced from a raw search record to fixed fields."""

    title: str = ""
    start_date: Optional[MonthDay] = None
    end_date: Optional[MonthDay] = None
    start_time: Optional[ClockTime] = None
    end_time: Optional[ClockTime] = None
    timezone: str = ""
    when_raw: str = ""
    address_line: str = ""
    city: str = ""
    region: str = ""
    postal_code: str = ""
    link: str = ""
