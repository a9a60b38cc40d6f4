"""Tests for booking reconciliation: validation, slot check, reservation, record."""

import threading
from datetime import date

import pytest

from barber_booking.availability import AvailabilityEngine
from barber_booking.config import Settings
from barber_booking.core import ConfirmedBooking
from barber_booking.locks import InMemorySlotLock, LeaseSlotLock, NullSlotLock
from barber_booking.reconciler import BookingReconciler, BookingStage, OutcomeStatus, find_matching_slot
from barber_booking.store import SlotStore
from tests.conftest import (
    BOOKINGS_RANGE,
    SLOTS_RANGE,
    FixedClock,
    RecordingDispatcher,
    booking_request,
    make_sheet,
    shop_time,
)


class TestValidation:
    @pytest.mark.parametrize("missing", ["name", "barber", "service", "date", "time"])
    def test_missing_required_field_rejected_before_store_io(self, reconciler, sheet, missing):
        outcome = reconciler.submit(booking_request(**{missing: None}))
        assert outcome.status == OutcomeStatus.VALIDATION_FAILED
        assert outcome.field == missing
        assert outcome.stage == BookingStage.REJECTED
        assert sheet.calls == []

    def test_blank_name_counts_as_missing(self, reconciler, sheet):
        outcome = reconciler.submit(booking_request(name="   "))
        assert outcome.field == "name"
        assert sheet.calls == []

    def test_email_and_phone_are_optional(self, reconciler):
        outcome = reconciler.submit(booking_request(email=None, phone=None))
        assert outcome.accepted
        assert outcome.email_sent is False

    def test_malformed_email(self, reconciler):
        outcome = reconciler.submit(booking_request(email="not-an-email"))
        assert outcome.status == OutcomeStatus.VALIDATION_FAILED
        assert outcome.field == "email"

    def test_unknown_service(self, reconciler):
        outcome = reconciler.submit(booking_request(service="Manicure"))
        assert outcome.field == "service"

    def test_service_must_be_on_the_menu(self, reconciler, sheet):
        outcome = reconciler.submit(booking_request(service="beard oil"))
        assert outcome.status == OutcomeStatus.VALIDATION_FAILED
        assert outcome.field == "service"
        assert sheet.calls == []

    def test_service_spelling_is_normalized(self, reconciler, sheet):
        assert reconciler.submit(booking_request(service="  beard   TRIM ")).accepted
        assert sheet.sheets["Form Responses"][1][5] == "Beard Trim"

    def test_past_date(self, reconciler, sheet):
        outcome = reconciler.submit(booking_request(date="3/7/2025"))
        assert outcome.status == OutcomeStatus.VALIDATION_FAILED
        assert outcome.field == "date"
        assert "past" in outcome.message
        assert sheet.calls == []

    def test_unreadable_date_and_time(self, reconciler):
        assert reconciler.submit(booking_request(date="next week")).field == "date"
        assert reconciler.submit(booking_request(time="noonish")).field == "time"


class TestReservation:
    def test_accepts_and_marks_row_booked(self, reconciler, sheet, dispatcher):
        outcome = reconciler.submit(booking_request())

        assert outcome.accepted
        assert outcome.stage == BookingStage.DONE
        assert outcome.sheet_updated
        assert outcome.calendar_updated
        assert outcome.email_sent
        assert sheet.cell("Available_Times", 2, 3) == "Booked"
        assert sheet.sheets["Form Responses"][1][1] == "Jordan Lee"
        assert [b.name for b in dispatcher.notified] == ["Jordan Lee"]

    def test_repeat_booking_is_slot_unavailable(self, reconciler):
        assert reconciler.submit(booking_request()).accepted
        outcome = reconciler.submit(booking_request(name="Someone Else"))
        assert outcome.status == OutcomeStatus.SLOT_UNAVAILABLE
        assert "no longer available" in outcome.message

    def test_already_booked_row(self, reconciler):
        outcome = reconciler.submit(booking_request(time="2:00 PM"))
        assert outcome.status == OutcomeStatus.SLOT_UNAVAILABLE

    def test_nonexistent_slot_is_rejected_not_waved_through(self, reconciler, sheet, dispatcher):
        outcome = reconciler.submit(booking_request(time="4:00 PM"))
        assert outcome.status == OutcomeStatus.SLOT_UNAVAILABLE
        assert not any(op == "update" for op, _ in sheet.calls)
        assert dispatcher.notified == []

    def test_loose_matching_of_barber_time_and_date(self, reconciler, sheet):
        outcome = reconciler.submit(booking_request(barber=" mike ", time="10:00am", date="03/10/2025"))
        assert outcome.accepted
        assert sheet.cell("Available_Times", 2, 3) == "Booked"

    def test_round_trip_removes_time_from_listing(self, store, settings, reconciler):
        engine = AvailabilityEngine(store, settings, clock=FixedClock(shop_time(2025, 3, 9, 12, 0)))
        before = [s.time for s in engine.list_times(date(2025, 3, 10), "Mike").times]
        assert "10:00 AM" in before

        assert reconciler.submit(booking_request()).accepted

        after = [s.time for s in engine.list_times(date(2025, 3, 10), "Mike").times]
        assert "10:00 AM" not in after


class TestDuplicates:
    def test_first_available_duplicate_wins(self):
        sheet = make_sheet(
            ["3/10/2025", "10:00 AM", "Mike", "Booked"],
            ["3/10/2025", "10:00 AM", "Mike", "Available"],
            ["3/10/2025", "10:00 AM", "Mike", "Available"],
        )
        slots = SlotStore(sheet, SLOTS_RANGE, BOOKINGS_RANGE).load_slots()
        booking = ConfirmedBooking(
            name="A", barber="Mike", service="Haircut", day=date(2025, 3, 10), minutes=600,
            date_text="3/10/2025", time_text="10:00 AM",
        )
        assert find_matching_slot(slots, booking).row_index == 3


class TestStoreFailures:
    def test_unreachable_on_read(self, reconciler, sheet):
        sheet.failing.add("get")
        outcome = reconciler.submit(booking_request())
        assert outcome.status == OutcomeStatus.STORE_UNREACHABLE
        assert outcome.stage == BookingStage.VALIDATED

    def test_unreachable_on_reservation_write(self, reconciler, sheet, dispatcher):
        sheet.failing.add("update")
        outcome = reconciler.submit(booking_request())
        assert outcome.status == OutcomeStatus.STORE_UNREACHABLE
        assert outcome.stage == BookingStage.SLOT_CHECKED
        assert dispatcher.notified == []

    def test_log_failure_keeps_booking(self, reconciler, sheet, dispatcher):
        sheet.failing.add("append")
        outcome = reconciler.submit(booking_request())
        assert outcome.accepted
        assert outcome.sheet_updated is False
        assert sheet.cell("Available_Times", 2, 3) == "Booked"
        assert len(dispatcher.notified) == 1


def _race(lock, attempts=2):
    sheet = make_sheet(["3/10/2025", "10:00 AM", "Mike", "Available"])
    store = SlotStore(sheet, SLOTS_RANGE, BOOKINGS_RANGE)
    settings = Settings(_env_file=None, timezone="America/Los_Angeles")
    reconciler = BookingReconciler(
        store, lock, RecordingDispatcher(), settings, clock=FixedClock(shop_time(2025, 3, 9, 12, 0))
    )

    barrier = threading.Barrier(attempts)
    outcomes = []
    guard = threading.Lock()

    def attempt(i):
        barrier.wait()
        outcome = reconciler.submit(booking_request(name=f"Customer {i}"))
        with guard:
            outcomes.append(outcome.status)

    threads = [threading.Thread(target=attempt, args=(i,)) for i in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return outcomes


class TestConcurrency:
    def test_memory_lock_allows_exactly_one_winner(self):
        outcomes = _race(InMemorySlotLock(wait_seconds=5), attempts=4)
        assert outcomes.count(OutcomeStatus.ACCEPTED) == 1
        assert outcomes.count(OutcomeStatus.SLOT_UNAVAILABLE) == 3

    def test_lease_lock_allows_exactly_one_winner(self, lease_engine):
        outcomes = _race(LeaseSlotLock(lease_engine, ttl_seconds=30), attempts=2)
        assert outcomes.count(OutcomeStatus.ACCEPTED) == 1
        assert outcomes.count(OutcomeStatus.SLOT_UNAVAILABLE) == 1

    def test_null_lock_sequential_bookings_still_checked(self):
        outcomes = _race(NullSlotLock(), attempts=1)
        assert outcomes == [OutcomeStatus.ACCEPTED]
