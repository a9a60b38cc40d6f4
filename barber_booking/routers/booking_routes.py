# barber_booking/routers/booking_routes.py

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from barber_booking.deps import get_reconciler
from barber_booking.reconciler import BookingReconciler, OutcomeStatus
from barber_booking.schemas import BookingRequest, BookingResponse

router = APIRouter(
    tags=["bookings"],
)

STATUS_CODES = {
    OutcomeStatus.ACCEPTED: 200,
    OutcomeStatus.VALIDATION_FAILED: 400,
    OutcomeStatus.SLOT_UNAVAILABLE: 409,
    OutcomeStatus.STORE_UNREACHABLE: 500,
}


@router.post("/submit-booking", response_model=BookingResponse)
def submit_booking(
    booking: BookingRequest,
    reconciler: BookingReconciler = Depends(get_reconciler),
):
    outcome = reconciler.submit(booking)

    if outcome.accepted:
        body = BookingResponse(
            success=True,
            message=outcome.message,
            email_sent=outcome.email_sent,
            sheet_updated=outcome.sheet_updated,
            calendar_updated=outcome.calendar_updated,
        )
    else:
        body = BookingResponse(success=False, message=outcome.message, field=outcome.field)

    return JSONResponse(
        status_code=STATUS_CODES[outcome.status],
        content=body.model_dump(by_alias=True, exclude_none=True),
    )
