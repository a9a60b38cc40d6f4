# barber_booking/locks.py
"""Mutual exclusion around the read-check-write reservation of one slot.

The spreadsheet has no compare-and-swap, so two requests for the same slot
must be serialized here. Pick the backend with LOCK_BACKEND:

- memory: per-slot threading locks; correct for a single process.
- lease:  a row per slot in a shared SQL database; correct across instances.
- none:   no exclusion (two customers can both win the same slot).
"""

import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from barber_booking.errors import SlotUnavailable
from barber_booking.models import SlotLease

logger = logging.getLogger(__name__)

BUSY_MESSAGE = "Someone else is booking this time slot right now. Please select another time."


class SlotLock:
    @contextmanager
    def hold(self, key: str):
        yield


class NullSlotLock(SlotLock):
    pass


class InMemorySlotLock(SlotLock):
    def __init__(self, wait_seconds: float = 10.0):
        self.wait_seconds = wait_seconds
        self._guard = threading.Lock()
        self._locks = {}  # key -> [lock, users]

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            if not entry[0].acquire(timeout=self.wait_seconds):
                logger.warning(f"Timed out waiting for slot lock {key}")
                raise SlotUnavailable(BUSY_MESSAGE, slot=key)
            try:
                yield
            finally:
                entry[0].release()
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._locks.pop(key, None)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeaseSlotLock(SlotLock):
    def __init__(self, engine, ttl_seconds: int = 60):
        self.engine = engine
        self.ttl = timedelta(seconds=ttl_seconds)

    @contextmanager
    def hold(self, key: str):
        holder = uuid.uuid4().hex
        self._acquire(key, holder)
        try:
            yield
        finally:
            self._release(key, holder)

    def _acquire(self, key: str, holder: str) -> None:
        now = _utcnow()
        self._reclaim_expired(key, now)

        # a live lease, or a concurrent claim, loses on the primary key
        with Session(self.engine) as session:
            session.add(SlotLease(slot_key=key, holder=holder, acquired_at=now, expires_at=now + self.ttl))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.info(f"Slot {key} is leased by another request")
                raise SlotUnavailable(BUSY_MESSAGE, slot=key)

    def _reclaim_expired(self, key: str, now: datetime) -> bool:
        """Drop the lease on ``key`` only if it has already expired."""
        stmt = delete(SlotLease).where(SlotLease.slot_key == key, SlotLease.expires_at <= now)
        with self.engine.begin() as conn:
            reclaimed = conn.execute(stmt).rowcount > 0
        if reclaimed:
            logger.warning(f"Reclaimed expired lease on {key}")
        return reclaimed

    def _release(self, key: str, holder: str) -> None:
        stmt = delete(SlotLease).where(SlotLease.slot_key == key, SlotLease.holder == holder)
        with self.engine.begin() as conn:
            conn.execute(stmt)
