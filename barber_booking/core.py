# barber_booking/core.py
"""Date/time values shared by the store, availability and booking code.

The sheet keeps dates as ``M/D/YYYY`` text and times as ``10:00 AM`` text.
Everything else in the package works on ``datetime.date`` and
minutes-since-midnight, converting only at the edges.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d", "%m-%d-%Y")

_TWELVE_HOUR = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*([ap])\.?\s*m?\.?$", re.IGNORECASE)
_TWENTY_FOUR_HOUR = re.compile(r"^(\d{1,2}):(\d{2})$")
_WHITESPACE = re.compile(r"\s+")


def parse_slot_date(value) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def format_slot_date(day: date) -> str:
    """3/10/2025, no zero padding (the sheet's own format)."""
    return f"{day.month}/{day.day}/{day.year}"


def parse_slot_time(value) -> Optional[int]:
    """Minutes since midnight for '10:00 AM', '1 pm', '14:30'; None if unreadable."""
    text = str(value or "").strip()
    match = _TWELVE_HOUR.match(text)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2) or 0)
        if not 1 <= hours <= 12 or minutes > 59:
            return None
        hours = hours % 12
        if match.group(3).lower() == "p":
            hours += 12
        return hours * 60 + minutes
    match = _TWENTY_FOUR_HOUR.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            return None
        return hours * 60 + minutes
    return None


def format_slot_time(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    period = "PM" if hours >= 12 else "AM"
    return f"{hours % 12 or 12}:{mins:02d} {period}"


def normalize_text(value) -> str:
    """Case-insensitive, whitespace-collapsed form used for name/time matching."""
    return _WHITESPACE.sub(" ", str(value or "").strip()).casefold()


def shop_now(timezone: str) -> datetime:
    return datetime.now(ZoneInfo(timezone))


def split_times_path(path: str) -> Tuple[str, Optional[str]]:
    """Split ``3/10/2025/Mike`` (an URL-decoded date plus barber) into parts.

    ``2025-03-10/Mike`` and a bare date are accepted as well.
    """
    segments = [s for s in path.strip("/").split("/") if s != ""]
    if not segments:
        return "", None
    if (
        len(segments) >= 3
        and segments[0].isdigit()
        and segments[1].isdigit()
        and len(segments[2]) == 4
        and segments[2].isdigit()
    ):
        date_text = "/".join(segments[:3])
        rest = segments[3:]
    else:
        date_text = segments[0]
        rest = segments[1:]
    barber = "/".join(rest).strip() or None
    return date_text, barber


@dataclass(frozen=True)
class SlotKey:
    day: date
    minutes: int
    barber: str

    @property
    def lock_key(self) -> str:
        return f"{self.day.isoformat()}|{self.minutes}|{normalize_text(self.barber)}"

    def __str__(self) -> str:
        return f"{format_slot_date(self.day)} at {format_slot_time(self.minutes)} with {self.barber}"


@dataclass(frozen=True)
class ConfirmedBooking:
    """A validated booking request, as handed to the store and notifiers."""

    name: str
    barber: str
    service: str
    day: date
    minutes: int
    date_text: str
    time_text: str
    email: Optional[str] = None
    phone: Optional[str] = None

    @property
    def key(self) -> SlotKey:
        return SlotKey(self.day, self.minutes, self.barber)

    def starts_at(self) -> datetime:
        hours, mins = divmod(self.minutes, 60)
        return datetime(self.day.year, self.day.month, self.day.day, hours, mins)
