# barber_booking/routers/availability_routes.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from barber_booking.availability import AvailabilityEngine
from barber_booking.core import format_slot_date, parse_slot_date, split_times_path
from barber_booking.deps import get_availability_engine
from barber_booking.schemas import BarbersResponse, DatesResponse, TimesResponse

router = APIRouter(
    tags=["availability"],
)


@router.get("/available-barbers", response_model=BarbersResponse)
def available_barbers(engine: AvailabilityEngine = Depends(get_availability_engine)):
    return {"barbers": engine.list_barbers()}


@router.get("/available-dates", response_model=DatesResponse)
@router.get("/available-dates/{barber}", response_model=DatesResponse)
def available_dates(
    barber: Optional[str] = None,
    engine: AvailabilityEngine = Depends(get_availability_engine),
):
    dates = engine.list_dates(barber or None)
    return {"dates": [format_slot_date(d) for d in dates]}


# The date arrives URL-encoded (3%2F10%2F2025) and is decoded into path
# segments before routing, so take the whole tail and split it ourselves.
@router.get("/available-times/{slot_path:path}", response_model=TimesResponse, response_model_exclude_none=True)
def available_times(
    slot_path: str,
    engine: AvailabilityEngine = Depends(get_availability_engine),
):
    date_text, barber = split_times_path(slot_path)
    if not date_text:
        raise HTTPException(status_code=400, detail="Date is required")
    day = parse_slot_date(date_text)
    if day is None:
        raise HTTPException(status_code=400, detail=f"Invalid date: {date_text}. Use M/D/YYYY")

    result = engine.list_times(day, barber)
    return {
        "availableTimes": [{"time": s.time, "barber": s.barber} for s in result.times],
        "date": date_text,
        "barber": barber or "Any",
        "message": result.message,
    }
