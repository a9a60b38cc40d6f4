"""Shared test fixtures and helpers."""

import re
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

import pytest

from barber_booking.availability import AvailabilityEngine
from barber_booking.config import Settings
from barber_booking.db import init_db, make_engine
from barber_booking.errors import StoreUnreachable
from barber_booking.locks import InMemorySlotLock
from barber_booking.notifications import NotificationResult
from barber_booking.reconciler import BookingReconciler
from barber_booking.schemas import BookingRequest
from barber_booking.store import SlotStore

TZ = "America/Los_Angeles"
SLOTS_RANGE = "Available_Times!A:Z"
BOOKINGS_RANGE = "Form Responses!A:H"
HEADER = ["Date", "Time", "Barber", "Status"]

_CELL = re.compile(r"^(?:'((?:[^']|'')*)'|([^!]+))!([A-Z]+)(\d+)$")


def shop_time(year, month, day, hour=9, minute=0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=ZoneInfo(TZ))


class FixedClock:
    def __init__(self, moment: datetime):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


class FakeSheetsClient:
    """In-memory stand-in for google_api.SheetsClient."""

    def __init__(self, sheets: Optional[dict] = None):
        self.sheets = {name: [list(r) for r in rows] for name, rows in (sheets or {}).items()}
        self.calls = []
        self.failing = set()

    @staticmethod
    def _sheet(range_name: str) -> str:
        return range_name.rsplit("!", 1)[0].strip("'") if "!" in range_name else range_name

    def _check(self, op: str, range_name: str):
        self.calls.append((op, range_name))
        if op in self.failing:
            raise StoreUnreachable(f"{op} failed")

    def get_values(self, range_name):
        self._check("get", range_name)
        return [list(r) for r in self.sheets.get(self._sheet(range_name), [])]

    def update_values(self, range_name, values):
        self._check("update", range_name)
        match = _CELL.match(range_name)
        assert match, f"not a single-cell range: {range_name}"
        name = (match.group(1) or match.group(2)).replace("''", "'")
        col = 0
        for letter in match.group(3):
            col = col * 26 + (ord(letter) - 64)
        row = self.sheets[name][int(match.group(4)) - 1]
        while len(row) < col:
            row.append("")
        row[col - 1] = values[0][0]

    def append_values(self, range_name, values):
        self._check("append", range_name)
        self.sheets.setdefault(self._sheet(range_name), []).extend(list(r) for r in values)

    def cell(self, sheet: str, row: int, col: int) -> str:
        return self.sheets[sheet][row - 1][col]


class RecordingDispatcher:
    def __init__(self):
        self.notified = []

    def notify(self, booking):
        self.notified.append(booking)
        return NotificationResult(emailed=bool(booking.email), shop_notified=True, calendar_inserted=True)


def make_sheet(*rows, header=HEADER) -> FakeSheetsClient:
    return FakeSheetsClient({"Available_Times": [list(header)] + [list(r) for r in rows]})


def booking_request(**overrides) -> BookingRequest:
    data = {
        "name": "Jordan Lee",
        "email": "jordan@example.com",
        "phone": "5035550100",
        "barber": "Mike",
        "service": "Haircut",
        "date": "3/10/2025",
        "time": "10:00 AM",
    }
    data.update(overrides)
    return BookingRequest(**data)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        timezone=TZ,
        open_hour=10,
        close_hour=19,
        closed_weekdays=[2, 6],
        horizon_days=90,
        lead_time_minutes=120,
        fallback_barbers=["Michael"],
        shop_phone="(503) 400-8151",
        spreadsheet_id="sheet-123",
        slots_range=SLOTS_RANGE,
        bookings_range=BOOKINGS_RANGE,
        lock_backend="memory",
        lock_wait_seconds=5,
    )


@pytest.fixture
def clock():
    # Monday 3/10/2025, 9:00 AM shop time
    return FixedClock(shop_time(2025, 3, 10, 9, 0))


@pytest.fixture
def sheet():
    return make_sheet(
        ["3/10/2025", "10:00 AM", "Mike", "Available"],
        ["3/10/2025", "2:00 PM", "Mike", "Booked"],
        ["3/10/2025", "11:00 AM", "Tony", "yes"],
        ["3/11/2025", "1:00 PM", "Mike", "Available"],
    )


@pytest.fixture
def store(sheet):
    return SlotStore(sheet, SLOTS_RANGE, BOOKINGS_RANGE)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def engine(store, settings, clock):
    return AvailabilityEngine(store, settings, clock=clock)


@pytest.fixture
def reconciler(store, settings, clock, dispatcher):
    return BookingReconciler(store, InMemorySlotLock(wait_seconds=5), dispatcher, settings, clock=clock)


@pytest.fixture
def lease_engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'leases.db'}")
    init_db(engine)
    yield engine
    engine.dispose()
