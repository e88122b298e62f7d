"""
Availability endpoint – occupied slots for a facility-day.

Open to everyone; the answer does not depend on who asks.
"""

from datetime import date

from fastapi import APIRouter, Query

from arena_booking.models import AvailabilityResponse
from arena_booking.services.availability import get_availability

router = APIRouter(prefix="/api", tags=["availability"])


@router.get(
    "/availability",
    response_model=AvailabilityResponse,
    operation_id="getAvailability",
    summary="Occupied and free slots for a facility on a date",
)
async def read_availability(
    facility_id: int = Query(..., description="Facility identifier"),
    booking_date: date = Query(..., alias="date", description="Booking date (YYYY-MM-DD)"),
) -> AvailabilityResponse:
    return await get_availability(facility_id, booking_date)
