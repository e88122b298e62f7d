"""
Reservation status lifecycle.

    pending            → approved | rejected | request-to-cancel
    approved           → request-to-cancel
    request-to-cancel  → cancelled | approved   (cancel request denied)

``rejected`` and ``cancelled`` are terminal: they free the slots and
never change again.  Legacy ``confirmed``/``paid`` rows behave like
``approved``.

Admins drive every transition except ``* → request-to-cancel``, which
the owning user triggers on their own reservation.
"""

from __future__ import annotations

import logging

from arena_booking import db
from arena_booking.errors import (
    BookingError,
    Forbidden,
    InvalidStatus,
    InvalidTransition,
    NotFound,
)
from arena_booking.models import (
    APPROVED,
    CANCELLED,
    CONFIRMED,
    PAID,
    PENDING,
    REJECTED,
    REQUEST_TO_CANCEL,
    TERMINAL_NEGATIVE_STATUSES,
    Reservation,
    UserInfo,
    canonical_status,
)
from arena_booking.services.notifier import notify_status_change

logger = logging.getLogger(__name__)

TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({APPROVED, REJECTED, REQUEST_TO_CANCEL}),
    APPROVED: frozenset({REQUEST_TO_CANCEL}),
    CONFIRMED: frozenset({REQUEST_TO_CANCEL}),
    PAID: frozenset({REQUEST_TO_CANCEL}),
    REQUEST_TO_CANCEL: frozenset({CANCELLED, APPROVED}),
    REJECTED: frozenset(),
    CANCELLED: frozenset(),
}


def normalize_status(raw: str | None) -> str:
    """Canonical status name; raises InvalidStatus for unknown values."""
    status = canonical_status(raw)
    if status not in TRANSITIONS:
        raise InvalidStatus(f"Unknown reservation status: {raw!r}")
    return status


def _authorize(reservation: Reservation, target: str, actor: UserInfo | None) -> None:
    if actor is None or actor.is_admin:
        return
    if target != REQUEST_TO_CANCEL:
        raise Forbidden("Only administrators can change this status")
    if reservation.user_id != actor.id:
        raise Forbidden("You can only cancel your own reservations")


async def update_status(
    reservation_id: int,
    new_status: str,
    *,
    actor: UserInfo | None = None,
) -> Reservation:
    """
    Move a reservation to *new_status*.

    Setting the current status again is a no-op and sends nothing.  A real
    transition is persisted first, then the owner gets exactly one
    notification (none for request-to-cancel, which they started).
    *actor* None means a trusted internal caller.
    """
    target = normalize_status(new_status)

    async with db.transaction():
        reservation = await db.get_reservation(reservation_id)
        if reservation is None:
            raise NotFound(f"Reservation {reservation_id} not found")
        _authorize(reservation, target, actor)

        current = canonical_status(reservation.status)
        if current == target:
            logger.debug("Reservation %s already %s", reservation_id, target)
            return reservation

        if target not in TRANSITIONS.get(current, frozenset()):
            raise InvalidTransition(
                f"Reservation {reservation_id} cannot go from {current} to {target}"
            )

        await db.update_reservation_status(reservation_id, target)
        if target in TERMINAL_NEGATIVE_STATUSES:
            await db.release_slot_claims(reservation_id)

    logger.info("Reservation %s: %s -> %s", reservation_id, current, target)
    updated = reservation.model_copy(update={"status": target})

    if target != REQUEST_TO_CANCEL:
        try:
            facility = await db.get_facility(reservation.facility_id)
        except BookingError:
            logger.warning("Facility %s lookup failed for notification", reservation.facility_id)
            facility = None
        await notify_status_change(updated, facility, target)

    return updated


async def request_cancellation(reservation_id: int, user: UserInfo) -> Reservation:
    """The owner's request to cancel; an admin later approves or denies it."""
    return await update_status(reservation_id, REQUEST_TO_CANCEL, actor=user)
