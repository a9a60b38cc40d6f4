# barber_booking/models.py

from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


class SlotLease(SQLModel, table=True):
    """A short-lived claim on one (date, time, barber) slot while it is being booked.

    The primary key is the slot key, so a second concurrent claim fails
    with IntegrityError on commit. Times are timezone-aware UTC.
    """

    slot_key: str = Field(primary_key=True)
    holder: str
    acquired_at: datetime = Field(sa_type=DateTime(timezone=True))
    expires_at: datetime = Field(sa_type=DateTime(timezone=True), index=True)
