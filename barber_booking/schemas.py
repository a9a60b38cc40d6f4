# barber_booking/schemas.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class BookingRequest(BaseModel):
    # every field optional here; missing ones are reported by the reconciler as a 400
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    barber: Optional[str] = None
    service: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None


class BookingResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    field: Optional[str] = None
    email_sent: Optional[bool] = Field(default=None, alias="emailSent")
    sheet_updated: Optional[bool] = Field(default=None, alias="sheetUpdated")
    calendar_updated: Optional[bool] = Field(default=None, alias="calendarUpdated")


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: datetime


class BarbersResponse(BaseModel):
    barbers: List[str]


class DatesResponse(BaseModel):
    dates: List[str]


class TimeSlotPublic(BaseModel):
    time: str
    barber: str


class TimesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    available_times: List[TimeSlotPublic] = Field(alias="availableTimes")
    date: str
    barber: str
    message: Optional[str] = None
