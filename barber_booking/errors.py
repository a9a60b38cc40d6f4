# barber_booking/errors.py

from typing import Optional


class BookingError(Exception):
    """Base class; ``message`` is safe to show to the customer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BookingValidationError(BookingError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class SlotUnavailable(BookingError):
    def __init__(
        self,
        message: str = "This time slot is no longer available. Please select another time.",
        slot: Optional[str] = None,
    ):
        super().__init__(message)
        self.slot = slot


class StoreUnreachable(BookingError):
    """The spreadsheet (or its credentials) could not be used."""


class SchemaError(StoreUnreachable):
    """The slot sheet's header row does not name every required column."""


class NotificationFailure(BookingError):
    """Calendar or email delivery failed; never fatal to a booking."""
