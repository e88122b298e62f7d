"""
Availability resolver – which slots of a facility-day are taken.

Occupancy is recomputed from the reservation store on every call; there
is no cache between the availability read and a booking
write.  A store failure propagates as StorageUnavailable instead of
being reported as "everything free".
"""

from __future__ import annotations

import logging
from datetime import date

from arena_booking import db
from arena_booking.models import OCCUPYING_STATUSES, AvailabilityResponse, canonical_status
from arena_booking.services.slot_catalog import catalog_labels, sort_labels
from arena_booking.services.time_normalizer import union_labels

logger = logging.getLogger(__name__)


async def _occupancy(facility_id: int, booking_date: date) -> tuple[set[str], int]:
    rows = [
        row
        for row in await db.list_reservation_rows(facility_id, booking_date)
        if canonical_status(row["status"]) in OCCUPYING_STATUSES
    ]
    occupied = union_labels(rows)
    logger.debug(
        "Facility %s on %s: %d reservations, occupied=%s",
        facility_id, booking_date, len(rows), sorted(occupied),
    )
    return occupied, len(rows)


async def get_occupied_slots(facility_id: int, booking_date: date) -> set[str]:
    """Union of the slots held by every non-rejected, non-cancelled reservation."""
    occupied, _ = await _occupancy(facility_id, booking_date)
    return occupied


async def get_availability(facility_id: int, booking_date: date) -> AvailabilityResponse:
    occupied, total = await _occupancy(facility_id, booking_date)
    return AvailabilityResponse(
        facility_id=facility_id,
        booking_date=booking_date,
        booked_slots=sort_labels(occupied),
        free_slots=[label for label in catalog_labels() if label not in occupied],
        total_bookings=total,
    )
