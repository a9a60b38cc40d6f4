# barber_booking/availability.py
"""Which barbers, dates and times are offered to customers.

Reads never fail the customer: if the sheet is unreachable or has no
usable rows, a schedule synthesized from the shop rules is served instead.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Callable, List, Optional

from barber_booking.config import Settings
from barber_booking.core import format_slot_time, normalize_text, shop_now
from barber_booking.errors import StoreUnreachable
from barber_booking.store import SlotRow

logger = logging.getLogger(__name__)

PAST_DATE_MESSAGE = "That date has already passed. Please pick another day."
BEYOND_HORIZON_MESSAGE = "We only take bookings up to {days} days ahead. Please pick an earlier date."


@dataclass(frozen=True)
class OpenSlot:
    time: str
    barber: str
    minutes: int


@dataclass
class TimesResult:
    times: List[OpenSlot] = field(default_factory=list)
    message: Optional[str] = None


class AvailabilityEngine:
    def __init__(self, store, settings: Settings, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.settings = settings
        self.clock = clock or (lambda: shop_now(settings.timezone))

    # ---------- snapshot ----------
    def _open_rows(self) -> Optional[List[SlotRow]]:
        """Available, parseable rows; None means 'use the synthetic schedule'."""
        try:
            rows = self.store.load_slots()
        except StoreUnreachable as e:
            logger.warning(f"Slot store unavailable, serving fallback schedule: {e.message}")
            return None

        usable = [r for r in rows if r.usable]
        if len(usable) < len(rows):
            logger.info(f"Ignoring {len(rows) - len(usable)} rows with unreadable date/time/barber")
        if not usable:
            logger.warning("No usable slot rows, serving fallback schedule")
            return None
        return [r for r in usable if r.is_available]

    def _today(self) -> date:
        return self.clock().date()

    def _is_closed(self, day: date) -> bool:
        return day.weekday() in self.settings.closed_weekdays

    def _in_business_hours(self, minutes: int) -> bool:
        # the close hour itself is the last bookable start
        return self.settings.open_hour * 60 <= minutes <= self.settings.close_hour * 60

    @staticmethod
    def _starts_at(day: date, minutes: int, now: datetime) -> datetime:
        return datetime.combine(day, time(*divmod(minutes, 60)), tzinfo=now.tzinfo)

    def _in_horizon(self, day: date) -> bool:
        today = self._today()
        return today <= day < today + timedelta(days=self.settings.horizon_days)

    # ---------- queries ----------
    def list_barbers(self) -> List[str]:
        rows = self._open_rows()
        if rows is None:
            return list(self.settings.fallback_barbers)

        barbers, seen = [], set()
        for row in rows:
            if row.barber not in seen:
                seen.add(row.barber)
                barbers.append(row.barber)
        logger.info(f"Found {len(barbers)} barbers with availability")
        return barbers

    def list_dates(self, barber: Optional[str] = None) -> List[date]:
        rows = self._open_rows()
        if rows is None:
            days = self._fallback_dates()
        else:
            wanted = normalize_text(barber) if barber else None
            days = {r.day for r in rows if wanted is None or normalize_text(r.barber) == wanted}

        dates = sorted(d for d in days if not self._is_closed(d) and self._in_horizon(d))
        logger.info(f"Found {len(dates)} available dates for barber {barber or 'any'}")
        return dates

    def list_times(self, day: date, barber: Optional[str] = None) -> TimesResult:
        if self._is_closed(day):
            return TimesResult(message=self.settings.closed_day_message)

        now = self.clock()
        if day < now.date():
            return TimesResult(message=PAST_DATE_MESSAGE)
        if not self._in_horizon(day):
            return TimesResult(message=BEYOND_HORIZON_MESSAGE.format(days=self.settings.horizon_days))

        rows = self._open_rows()
        if rows is None:
            candidates = self._fallback_times(barber)
        else:
            wanted = normalize_text(barber) if barber else None
            candidates = [
                OpenSlot(time=r.time_text, barber=r.barber, minutes=r.minutes)
                for r in rows
                if r.day == day and (wanted is None or normalize_text(r.barber) == wanted)
            ]

        times = [s for s in candidates if self._in_business_hours(s.minutes)]
        if day == now.date():
            earliest = now + timedelta(minutes=self.settings.lead_time_minutes)
            times = [s for s in times if self._starts_at(day, s.minutes, now) >= earliest]

        times.sort(key=lambda s: s.minutes)
        logger.info(f"Found {len(times)} available times on {day} for barber {barber or 'any'}")
        return TimesResult(times=times)

    # ---------- fallback schedule ----------
    def _fallback_dates(self) -> set:
        today = self._today()
        return {today + timedelta(days=i) for i in range(self.settings.horizon_days)}

    def _fallback_times(self, barber: Optional[str]) -> List[OpenSlot]:
        barbers = [barber] if barber else list(self.settings.fallback_barbers)
        return [
            OpenSlot(time=format_slot_time(hour * 60), barber=name, minutes=hour * 60)
            for hour in range(self.settings.open_hour, self.settings.close_hour + 1)
            for name in barbers
        ]
