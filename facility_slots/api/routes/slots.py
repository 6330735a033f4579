"""Weekly availability and booking endpoints."""

from typing import Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from facility_slots.api.dependencies import get_slot_service
from facility_slots.api.rate_limit import rate_limit
from facility_slots.engine import SlotService
from facility_slots.scheduling.models import (
    ApiResponse,
    AvailableSlot,
    BookingRequest,
    ErrorKind,
)

router = APIRouter(prefix="/slots", dependencies=[Depends(rate_limit)])

# Booking failures the caller can fix (or that upstream refused) are 400s;
# anything that went wrong on the way to upstream is a 502.
_BOOKING_STATUS = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.REJECTED: 400,
    ErrorKind.UPSTREAM_TRANSPORT: 502,
    ErrorKind.UPSTREAM_DATA: 502,
    ErrorKind.UNEXPECTED: 502,
}


def _error_response(result: ApiResponse, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=result.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@router.get(
    "/week/{monday}",
    response_model=ApiResponse[list[AvailableSlot]],
    response_model_exclude_none=True,
    responses={500: {"model": ApiResponse[list[AvailableSlot]]}},
)
async def get_weekly_availability(
    monday: str,
    service: SlotService = Depends(get_slot_service),
):
    """Return the bookable slots for the week starting on *monday* (yyyyMMdd)."""
    result = await service.get_weekly_availability(monday)
    if result.success:
        return result
    return _error_response(result, 500)


@router.post(
    "/book",
    response_model=ApiResponse[bool],
    response_model_exclude_none=True,
    responses={400: {"model": ApiResponse[bool]}, 502: {"model": ApiResponse[bool]}},
)
async def book_slot(
    request: Optional[BookingRequest] = Body(default=None),
    service: SlotService = Depends(get_slot_service),
):
    """Take a slot for a patient."""
    result = await service.book_slot(request)
    if result.success:
        return result
    return _error_response(result, _BOOKING_STATUS.get(result.error_type, 400))
