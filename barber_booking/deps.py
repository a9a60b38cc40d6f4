# barber_booking/deps.py

from functools import lru_cache

from fastapi import Depends

from barber_booking.availability import AvailabilityEngine
from barber_booking.config import Settings, get_settings
from barber_booking.db import init_db, make_engine
from barber_booking.google_api import CalendarClient, SheetsClient
from barber_booking.locks import InMemorySlotLock, LeaseSlotLock, NullSlotLock
from barber_booking.notifications import NotificationDispatcher, SmtpMailer
from barber_booking.reconciler import BookingReconciler
from barber_booking.store import SlotStore


def build_slot_lock(settings: Settings):
    if settings.lock_backend == "lease":
        engine = make_engine(settings.lease_database_url)
        init_db(engine)
        return LeaseSlotLock(engine, ttl_seconds=settings.lease_ttl_seconds)
    if settings.lock_backend == "none":
        return NullSlotLock()
    return InMemorySlotLock(wait_seconds=settings.lock_wait_seconds)


# One of each per process; the lock in particular must be shared by all requests
@lru_cache
def get_store() -> SlotStore:
    settings = get_settings()
    return SlotStore(SheetsClient(settings), settings.slots_range, settings.bookings_range)


@lru_cache
def get_slot_lock():
    return build_slot_lock(get_settings())


@lru_cache
def get_dispatcher() -> NotificationDispatcher:
    settings = get_settings()
    return NotificationDispatcher(settings, CalendarClient(settings), SmtpMailer(settings))


def get_availability_engine(
    store: SlotStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> AvailabilityEngine:
    return AvailabilityEngine(store, settings)


def get_reconciler(
    store: SlotStore = Depends(get_store),
    lock=Depends(get_slot_lock),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
) -> BookingReconciler:
    return BookingReconciler(store, lock, dispatcher, settings)
