"""
Admin endpoints – grouped booking overview and status changes.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from arena_booking import db
from arena_booking.dependencies import AdminUser, PaginationParams, paginate
from arena_booking.models import (
    BookingGroupListResponse,
    ErrorResponse,
    Reservation,
    StatusUpdate,
    canonical_status,
)
from arena_booking.services import lifecycle
from arena_booking.services.grouping import group_reservations

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get(
    "/bookings",
    response_model=BookingGroupListResponse,
    operation_id="listGroupedBookings",
    summary="All bookings, rows created together merged into one entry",
)
async def list_grouped_bookings(
    admin: AdminUser,
    pagination: PaginationParams = Depends(PaginationParams),
    facility_id: int | None = Query(None, description="Filter by facility"),
    booking_date: date | None = Query(None, description="Filter by booking date"),
    user_id: str | None = Query(None, description="Filter by owning user"),
    status: str | None = Query(None, description="Filter by group status"),
) -> BookingGroupListResponse:
    rows = await db.list_reservations(
        user_id=user_id,
        facility_id=facility_id,
        booking_date=booking_date,
    )
    groups = group_reservations(rows)
    if status is not None:
        wanted = canonical_status(status)
        groups = [g for g in groups if g.status == wanted]
    return paginate(groups, pagination, BookingGroupListResponse)


@router.patch(
    "/bookings/{reservation_id}/status",
    response_model=Reservation,
    operation_id="updateBookingStatus",
    summary="Approve, reject or settle a cancellation request",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def update_booking_status(
    reservation_id: int,
    body: StatusUpdate,
    admin: AdminUser,
) -> Reservation:
    return await lifecycle.update_status(reservation_id, body.status, actor=admin)
