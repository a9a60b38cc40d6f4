# barber_booking/store.py
"""Slot sheet adapter: reads slot rows, flips status cells, appends booking records."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional

from barber_booking.core import ConfirmedBooking, parse_slot_date, parse_slot_time
from barber_booking.errors import SchemaError

logger = logging.getLogger(__name__)

AVAILABLE_TOKENS = {"available", "yes", "true", "1", "y", "open"}
BOOKED_TOKEN = "Booked"

BOOKING_LOG_HEADER = ["Timestamp", "Name", "Email", "Phone", "Barber", "Service", "Date", "Time"]


def is_available_status(value) -> bool:
    return str(value or "").strip().lower() in AVAILABLE_TOKENS


@dataclass(frozen=True)
class ColumnMap:
    date: int
    time: int
    barber: int
    status: int

    @property
    def width(self) -> int:
        """Minimum cells a row needs to be readable."""
        return max(self.date, self.time, self.barber, self.status) + 1


def resolve_columns(header: List[str]) -> ColumnMap:
    """Map a header row to column positions, failing closed.

    date/time/barber: first header containing that word.
    status: first header equal to 'status' or containing 'avail' or 'booked'.
    """
    names = [str(h or "").strip().lower() for h in header]

    def find(predicate) -> int:
        return next((i for i, h in enumerate(names) if predicate(h)), -1)

    found = {
        "date": find(lambda h: "date" in h),
        "time": find(lambda h: "time" in h),
        "barber": find(lambda h: "barber" in h),
        "status": find(lambda h: h == "status" or "avail" in h or "booked" in h),
    }
    missing = [k for k, v in found.items() if v == -1]
    if missing:
        logger.error(f"Slot sheet is missing columns {missing}; headers were {names}")
        raise SchemaError(f"Slot sheet is missing required columns: {', '.join(missing)}")
    return ColumnMap(**found)


def column_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA."""
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


def sheet_name(range_name: str) -> str:
    name = range_name.rsplit("!", 1)[0] if "!" in range_name else range_name
    return name.strip("'")


def quote_sheet(name: str) -> str:
    if name.replace("_", "").isalnum():
        return name
    return "'" + name.replace("'", "''") + "'"


@dataclass(frozen=True)
class SlotRow:
    date_text: str
    time_text: str
    barber: str
    status: str
    row_index: int       # absolute sheet row (header is row 1)
    status_column: int   # 0-based
    day: Optional[date] = None
    minutes: Optional[int] = None

    @property
    def is_available(self) -> bool:
        return is_available_status(self.status)

    @property
    def usable(self) -> bool:
        return self.day is not None and self.minutes is not None and bool(self.barber.strip())


class SlotStore:
    """Slot rows and booking log kept in a Google spreadsheet.

    `client` is anything with get_values / update_values / append_values
    (normally `google_api.SheetsClient`). All failures surface as
    StoreUnreachable.
    """

    def __init__(self, client, slots_range: str, bookings_range: str):
        self.client = client
        self.slots_range = slots_range
        self.bookings_range = bookings_range

    def load_slots(self) -> List[SlotRow]:
        rows = self.client.get_values(self.slots_range)
        if not rows:
            logger.warning("Slot sheet is empty")
            return []

        columns = resolve_columns(rows[0])
        slots = []
        skipped = 0
        for offset, row in enumerate(rows[1:]):
            if len(row) < columns.width:
                skipped += 1
                continue
            date_text = row[columns.date].strip()
            time_text = row[columns.time].strip()
            slots.append(
                SlotRow(
                    date_text=date_text,
                    time_text=time_text,
                    barber=row[columns.barber].strip(),
                    status=row[columns.status].strip(),
                    row_index=offset + 2,
                    status_column=columns.status,
                    day=parse_slot_date(date_text),
                    minutes=parse_slot_time(time_text),
                )
            )
        logger.info(f"Loaded {len(slots)} slot rows ({skipped} malformed rows skipped)")
        return slots

    def mark_booked(self, slot: SlotRow) -> None:
        """Write 'Booked' into the slot's status cell. Not a compare-and-swap."""
        cell = f"{quote_sheet(sheet_name(self.slots_range))}!{column_letter(slot.status_column)}{slot.row_index}"
        self.client.update_values(cell, [[BOOKED_TOKEN]])
        logger.info(f"Marked row {slot.row_index} booked ({slot.date_text} {slot.time_text} {slot.barber})")

    def _log_header_range(self) -> str:
        last = column_letter(len(BOOKING_LOG_HEADER) - 1)
        return f"{quote_sheet(sheet_name(self.bookings_range))}!A1:{last}1"

    def append_booking_record(self, booking: ConfirmedBooking, timestamp: Optional[datetime] = None) -> None:
        timestamp = timestamp or datetime.now(timezone.utc)
        record = [
            timestamp.isoformat(),
            booking.name,
            booking.email or "",
            booking.phone or "",
            booking.barber,
            booking.service,
            booking.date_text,
            booking.time_text,
        ]
        values = [record]
        if not self.client.get_values(self._log_header_range()):
            values = [BOOKING_LOG_HEADER, record]
        self.client.append_values(self.bookings_range, values)
        logger.info(f"Recorded booking for {booking.name} on {booking.date_text} at {booking.time_text}")
