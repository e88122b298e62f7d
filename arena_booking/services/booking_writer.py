"""
Booking writer – the only path that creates occupancy.

The flow for one request:

1.  Canonicalise the requested labels and check them against the slot
    catalog (no storage access yet).
2.  Load the facility and, if given, the promotion.
3.  Inside a single write transaction: re-read occupancy, reject any
    overlap, insert the reservation in ``pending`` and claim each slot.
    The claim table's primary key backs up the occupancy check.

Availability the client saw earlier is never trusted; step 3 is the
authority.  Waiting for the write lock and the write itself each get
BOOKING_WRITE_TIMEOUT.  A timeout while waiting means nothing was stored;
a timeout once the write has begun means "maybe reserved, look before
retrying".  BookingTimeout.may_be_reserved tells the two apart.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from datetime import date

from arena_booking import db
from arena_booking.config import BOOKING_WRITE_TIMEOUT
from arena_booking.errors import (
    BookingTimeout,
    FacilityUnavailable,
    InvalidSlotSelection,
    NotFound,
    PromotionInvalid,
    SlotConflict,
)
from arena_booking.models import FACILITY_AVAILABLE, PENDING, Promotion, Reservation
from arena_booking.services.availability import get_occupied_slots
from arena_booking.services.pricing import base_price, calculate_final_price, is_promotion_valid
from arena_booking.services.slot_catalog import is_catalog_label, sort_labels
from arena_booking.services.time_normalizer import canonical_label, slot_window

logger = logging.getLogger(__name__)


def validate_selection(requested_slots: Iterable) -> list[str]:
    """Canonical, de-duplicated, ordered labels; raises InvalidSlotSelection."""
    requested = list(requested_slots or [])
    if not requested:
        raise InvalidSlotSelection("No time slots selected")

    labels: list[str] = []
    invalid: list[str] = []
    for raw in requested:
        label = canonical_label(raw)
        if label is None or not is_catalog_label(label):
            invalid.append(str(raw))
        else:
            labels.append(label)

    if invalid:
        raise InvalidSlotSelection(f"Not bookable time slots: {', '.join(invalid)}")
    return sort_labels(labels)


async def _load_promotion(promotion_id: int, user_id: str | None) -> Promotion:
    if user_id is None:
        raise PromotionInvalid("Promotions require a signed-in user")
    promotion = await db.get_promotion(promotion_id)
    if promotion is None:
        raise PromotionInvalid(f"Promotion {promotion_id} not found")
    if not is_promotion_valid(promotion):
        raise PromotionInvalid(f"Promotion {promotion.name} is expired or inactive")
    return promotion


async def _write_reservation(
    facility_id: int,
    booking_date: date,
    labels: list[str],
    *,
    user_id: str | None,
    total_price: float,
    promotion: Promotion | None,
    deadline: asyncio.Timeout,
    started: asyncio.Event,
) -> int:
    start_time, end_time = slot_window(booking_date, labels)

    async with db.transaction():
        # Waiting for the write lock spent part of the budget; the write gets its own.
        deadline.reschedule(asyncio.get_running_loop().time() + BOOKING_WRITE_TIMEOUT)
        started.set()
        occupied = await get_occupied_slots(facility_id, booking_date)
        conflicts = sort_labels(set(labels) & occupied)
        if conflicts:
            raise SlotConflict(conflicts)

        if promotion is not None and await db.has_used_promotion(promotion.id, user_id):
            raise PromotionInvalid(f"Promotion {promotion.name} has already been used")

        reservation_id = await db.insert_reservation(
            facility_id,
            booking_date,
            status=PENDING,
            total_price=total_price,
            user_id=user_id,
            time_slots=labels,
            start_time=start_time,
            end_time=end_time,
            promotion_id=promotion.id if promotion else None,
        )
        await db.insert_slot_claims(facility_id, booking_date, labels, reservation_id)
        if promotion is not None:
            await db.record_promotion_usage(promotion.id, user_id, reservation_id)

    return reservation_id


async def create_booking(
    facility_id: int,
    booking_date: date,
    requested_slots: Iterable,
    user_id: str | None = None,
    promotion_id: int | None = None,
    *,
    quoted_price: float | None = None,
) -> Reservation:
    """Validate a slot selection, price it and persist a pending reservation."""
    labels = validate_selection(requested_slots)

    facility = await db.get_facility(facility_id)
    if facility is None:
        raise NotFound(f"Facility {facility_id} not found")
    if facility.status != FACILITY_AVAILABLE:
        raise FacilityUnavailable(f"Facility {facility.name} is {facility.status}")

    promotion = await _load_promotion(promotion_id, user_id) if promotion_id is not None else None

    total_price = calculate_final_price(base_price(facility.hourly_rate, len(labels)), promotion)
    if quoted_price is not None and abs(quoted_price - total_price) > 0.005:
        logger.warning(
            "Quoted price %.2f differs from computed %.2f for facility %s on %s",
            quoted_price, total_price, facility_id, booking_date,
        )

    started = asyncio.Event()
    try:
        async with asyncio.timeout(BOOKING_WRITE_TIMEOUT) as deadline:
            reservation_id = await _write_reservation(
                facility_id,
                booking_date,
                labels,
                user_id=user_id,
                total_price=total_price,
                promotion=promotion,
                deadline=deadline,
                started=started,
            )
    except TimeoutError:
        logger.error(
            "Booking write timed out for facility %s on %s (%s)",
            facility_id, booking_date, ", ".join(labels),
        )
        raise BookingTimeout(may_be_reserved=started.is_set()) from None

    logger.info(
        "Reservation %s created: facility=%s date=%s slots=%s price=%.2f user=%s",
        reservation_id, facility_id, booking_date, labels, total_price, user_id,
    )
    reservation = await db.get_reservation(reservation_id)
    if reservation is None:
        raise NotFound(f"Reservation {reservation_id} vanished after insert")
    return reservation
