# barber_booking/routers/health_routes.py

from datetime import datetime, timezone

from fastapi import APIRouter

from barber_booking.schemas import HealthResponse

router = APIRouter(
    tags=["health"],
)


@router.get("/health", response_model=HealthResponse)
def health_check():
    return {
        "status": "ok",
        "message": "Booking API is running",
        "timestamp": datetime.now(timezone.utc),
    }
