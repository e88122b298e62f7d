"""
Notification sink for reservation status changes.

Each delivered change produces one in-app notification row and, when
the user directory knows an address, one email.  Delivery is
best-effort: failures are logged and never undo the status change that
triggered them.
"""

from __future__ import annotations

import logging

from arena_booking import db
from arena_booking.models import (
    APPROVED,
    CANCELLED,
    CONFIRMED,
    PENDING,
    REJECTED,
    Facility,
    Notification,
    Reservation,
)
from arena_booking.services.email import send_status_email
from arena_booking.services.slot_catalog import sort_labels
from arena_booking.services.time_normalizer import occupied_labels

logger = logging.getLogger(__name__)

_STATUS_TEXT = {
    APPROVED: "approved",
    CONFIRMED: "approved",
    REJECTED: "rejected",
    CANCELLED: "cancelled",
    PENDING: "set back to pending",
}


def describe_window(reservation: Reservation) -> str:
    """Human-readable date and time window, e.g. "Mon 12 Jan 2026, 13:00–15:00"."""
    day = reservation.booking_date.strftime("%a %d %b %Y")
    labels = sort_labels(occupied_labels(reservation.model_dump()))
    if not labels:
        return day
    return f"{day}, {labels[0][:5]}–{labels[-1][6:]}"


def build_message(
    reservation: Reservation,
    facility: Facility | None,
    new_status: str,
) -> tuple[str, str]:
    """Return (title, message) for a status change."""
    status_text = _STATUS_TEXT.get(new_status, new_status)
    title = f"Booking {status_text}"
    facility_name = facility.name if facility else f"facility #{reservation.facility_id}"
    message = (
        f"Your booking of {facility_name} on {describe_window(reservation)} "
        f"was {status_text} by an administrator."
    )
    return title, message


async def notify_status_change(
    reservation: Reservation,
    facility: Facility | None,
    new_status: str,
) -> Notification | None:
    """Notify the reservation's owner.  Returns the stored notification, if any."""
    if reservation.user_id is None:
        return None

    title, message = build_message(reservation, facility, new_status)

    try:
        notification = await db.create_notification(
            reservation.user_id,
            title,
            message,
            type="booking",
            related_id=reservation.id,
        )
    except Exception:
        logger.exception(
            "Failed to store notification for reservation %s", reservation.id
        )
        return None

    try:
        user = await db.get_user(reservation.user_id)
        if user is not None and user.email:
            await send_status_email(user.email, title, message)
    except Exception:
        logger.exception(
            "Failed to email user %s about reservation %s",
            reservation.user_id, reservation.id,
        )

    logger.info(
        "Notified user %s: reservation %s is now %s",
        reservation.user_id, reservation.id, new_status,
    )
    return notification
