# barber_booking/reconciler.py
"""Turns a booking request into an accepted or rejected outcome.

Received -> Validated -> SlotChecked -> Reserved -> Recorded -> Notified -> Done,
leaving for Rejected at validation or when no available row matches.
The slot sheet is re-read under the slot lock for every attempt.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from barber_booking.config import Settings
from barber_booking.core import (
    ConfirmedBooking,
    normalize_text,
    parse_slot_date,
    parse_slot_time,
    shop_now,
)
from barber_booking.data import offered_service
from barber_booking.errors import BookingValidationError, SlotUnavailable, StoreUnreachable
from barber_booking.schemas import BookingRequest
from barber_booking.store import SlotRow

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "barber", "service", "date", "time")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

ACCEPTED_MESSAGE = "Booking confirmed successfully!"
STORE_DOWN_MESSAGE = "We couldn't reach the booking system. Please try again shortly."


class BookingStage(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    SLOT_CHECKED = "slot_checked"
    RESERVED = "reserved"
    RECORDED = "recorded"
    NOTIFIED = "notified"
    DONE = "done"
    REJECTED = "rejected"


class OutcomeStatus(str, Enum):
    ACCEPTED = "accepted"
    SLOT_UNAVAILABLE = "slot-unavailable"
    VALIDATION_FAILED = "validation-failed"
    STORE_UNREACHABLE = "store-unreachable"


@dataclass
class BookingOutcome:
    status: OutcomeStatus
    message: str
    stage: BookingStage
    field: Optional[str] = None
    slot: Optional[str] = None
    email_sent: bool = False
    sheet_updated: bool = False
    calendar_updated: bool = False

    @property
    def accepted(self) -> bool:
        return self.status == OutcomeStatus.ACCEPTED


def find_matching_slot(slots: List[SlotRow], booking: ConfirmedBooking) -> Optional[SlotRow]:
    """First available row for (date, time, barber); rows are checked in sheet order."""
    barber = normalize_text(booking.barber)
    time_text = normalize_text(booking.time_text)
    for row in slots:
        if not row.is_available:
            continue
        if normalize_text(row.barber) != barber:
            continue
        if not (normalize_text(row.time_text) == time_text or row.minutes == booking.minutes):
            continue
        if row.date_text == booking.date_text or row.day == booking.day:
            return row
    return None


class BookingReconciler:
    def __init__(
        self,
        store,
        lock,
        dispatcher,
        settings: Settings,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.lock = lock
        self.dispatcher = dispatcher
        self.settings = settings
        self.clock = clock or (lambda: shop_now(settings.timezone))

    def submit(self, request: BookingRequest) -> BookingOutcome:
        stage = BookingStage.RECEIVED
        try:
            booking = self.validate(request)
            stage = BookingStage.VALIDATED
            logger.info(f"Processing booking: {booking.key} for {booking.name}")

            with self.lock.hold(booking.key.lock_key):
                slot = find_matching_slot(self.store.load_slots(), booking)
                if slot is None:
                    raise SlotUnavailable(slot=str(booking.key))
                stage = BookingStage.SLOT_CHECKED
                self.store.mark_booked(slot)
                stage = BookingStage.RESERVED
        except BookingValidationError as e:
            logger.info(f"Booking rejected ({e.field}): {e.message}")
            return BookingOutcome(OutcomeStatus.VALIDATION_FAILED, e.message, BookingStage.REJECTED, field=e.field)
        except SlotUnavailable as e:
            logger.info(f"Booking rejected, slot unavailable: {e.slot}")
            return BookingOutcome(OutcomeStatus.SLOT_UNAVAILABLE, e.message, BookingStage.REJECTED, slot=e.slot)
        except StoreUnreachable as e:
            logger.error(f"Booking failed at stage {stage.value}: {e.message}")
            return BookingOutcome(OutcomeStatus.STORE_UNREACHABLE, STORE_DOWN_MESSAGE, stage)

        # the slot is ours from here on; later failures only clear flags
        outcome = BookingOutcome(OutcomeStatus.ACCEPTED, ACCEPTED_MESSAGE, stage, slot=str(booking.key))
        try:
            self.store.append_booking_record(booking)
            outcome.sheet_updated = True
        except StoreUnreachable as e:
            logger.warning(f"Booking {booking.key} reserved but not logged: {e.message}")
        outcome.stage = BookingStage.RECORDED

        notified = self.dispatcher.notify(booking)
        outcome.email_sent = notified.emailed
        outcome.calendar_updated = notified.calendar_inserted
        outcome.stage = BookingStage.NOTIFIED

        logger.info(f"Booking confirmed: {booking.key} for {booking.name}")
        outcome.stage = BookingStage.DONE
        return outcome

    def validate(self, request: BookingRequest) -> ConfirmedBooking:
        for name in REQUIRED_FIELDS:
            if not getattr(request, name):
                raise BookingValidationError(f"Missing required booking information: {name}", field=name)

        if request.email and not EMAIL_PATTERN.match(request.email):
            raise BookingValidationError("Please enter a valid email address.", field="email")

        service = offered_service(request.service)
        if service is None:
            raise BookingValidationError(f"Unknown service: {request.service}", field="service")

        day = parse_slot_date(request.date)
        if day is None:
            raise BookingValidationError(f"Invalid date: {request.date}", field="date")
        if day < self.clock().date():
            raise BookingValidationError("Cannot book an appointment in the past.", field="date")

        minutes = parse_slot_time(request.time)
        if minutes is None:
            raise BookingValidationError(f"Invalid time: {request.time}", field="time")

        return ConfirmedBooking(
            name=request.name,
            barber=request.barber,
            service=service,
            day=day,
            minutes=minutes,
            date_text=request.date,
            time_text=request.time,
            email=request.email or None,
            phone=request.phone or None,
        )
