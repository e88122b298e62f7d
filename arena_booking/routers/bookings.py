"""
Booking endpoints – create reservations and manage your own.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from arena_booking import db
from arena_booking.dependencies import CurrentUser, OptionalUser, PaginationParams, paginate
from arena_booking.models import (
    BookingCreate,
    ErrorResponse,
    Reservation,
    ReservationListResponse,
    UserInfo,
)
from arena_booking.rate_limit import BOOKING, limiter
from arena_booking.services import lifecycle
from arena_booking.services.booking_writer import create_booking

router = APIRouter(prefix="/api/bookings", tags=["bookings"])

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def _booking_user_id(body: BookingCreate, current_user: UserInfo | None) -> str | None:
    """Who the reservation belongs to: the caller, or a guest."""
    if current_user is None:
        if body.user_id is not None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Sign in to book for a user account.",
            )
        return None

    if body.user_id is not None and body.user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only book for yourself.",
        )
    return body.user_id or current_user.id


@router.post(
    "",
    response_model=Reservation,
    status_code=status.HTTP_201_CREATED,
    operation_id="createBooking",
    summary="Reserve one or more slots of a facility",
    responses=_ERRORS,
)
@limiter.limit(BOOKING)
async def create_booking_endpoint(
    request: Request,
    body: BookingCreate,
    current_user: OptionalUser,
) -> Reservation:
    user_id = _booking_user_id(body, current_user)
    return await create_booking(
        body.facility_id,
        body.booking_date,
        body.time_slots,
        user_id,
        body.promotion_id,
        quoted_price=body.total_price,
    )


@router.get(
    "",
    response_model=ReservationListResponse,
    operation_id="listMyBookings",
    summary="List the authenticated user's reservations",
)
async def list_my_bookings(
    current_user: CurrentUser,
    pagination: PaginationParams = Depends(PaginationParams),
    facility_id: int | None = Query(None, description="Filter by facility"),
    booking_date: date | None = Query(None, description="Filter by booking date"),
) -> ReservationListResponse:
    reservations = await db.list_reservations(
        user_id=current_user.id,
        facility_id=facility_id,
        booking_date=booking_date,
    )
    return paginate(reservations, pagination, ReservationListResponse)


@router.get(
    "/{reservation_id}",
    response_model=Reservation,
    operation_id="getBooking",
    summary="Get one of your reservations",
)
async def get_booking(reservation_id: int, current_user: CurrentUser) -> Reservation:
    reservation = await db.get_reservation(reservation_id)
    if reservation is None or (
        reservation.user_id != current_user.id and not current_user.is_admin
    ):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Reservation {reservation_id} not found",
        )
    return reservation


@router.post(
    "/{reservation_id}/cancel-request",
    response_model=Reservation,
    operation_id="requestCancellation",
    summary="Ask an administrator to cancel your reservation",
    responses=_ERRORS,
)
async def request_cancellation(reservation_id: int, current_user: CurrentUser) -> Reservation:
    return await lifecycle.request_cancellation(reservation_id, current_user)
