"""
Booking error taxonomy.

Services raise these; a single exception handler in ``arena_booking.main``
turns them into ``{"error": {"code": ..., "message": ...}}`` responses.
``code`` is the machine-readable identifier clients switch on.
"""

from __future__ import annotations


class BookingError(Exception):
    """Base class for every error the booking core reports to callers."""

    code: str = "BookingError"
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class InvalidSlotSelection(BookingError):
    """Empty selection, unparsable label, or label outside the catalog."""

    code = "InvalidSlotSelection"
    status_code = 400


class SlotConflict(BookingError):
    code = "SlotConflict"
    status_code = 409

    def __init__(self, conflicts: list[str]) -> None:
        self.conflicts = list(conflicts)
        super().__init__(f"Slots already booked: {', '.join(self.conflicts)}")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "conflicts": self.conflicts}


class PromotionInvalid(BookingError):
    code = "PromotionInvalid"
    status_code = 422


class FacilityUnavailable(BookingError):
    code = "FacilityUnavailable"
    status_code = 409


class NotFound(BookingError):
    code = "NotFound"
    status_code = 404


class Forbidden(BookingError):
    code = "Forbidden"
    status_code = 403


class InvalidStatus(BookingError):
    code = "InvalidStatus"
    status_code = 400


class InvalidTransition(BookingError):
    code = "InvalidTransition"
    status_code = 409


class StorageUnavailable(BookingError):
    """The backing store could not be reached or failed mid-operation."""

    code = "StorageUnavailable"
    status_code = 503


class BookingTimeout(BookingError):
    """
    The write did not finish in time.

    ``may_be_reserved`` is False when the request never got the write lock,
    so nothing was stored and the client can simply retry.
    """

    code = "BookingTimeout"
    status_code = 504

    def __init__(self, may_be_reserved: bool = True) -> None:
        self.may_be_reserved = may_be_reserved
        if may_be_reserved:
            message = (
                "Booking timed out and may have been reserved. "
                "Check availability before retrying."
            )
        else:
            message = "Booking timed out before anything was written. Please try again."
        super().__init__(message)

    def to_dict(self) -> dict:
        return {**super().to_dict(), "may_be_reserved": self.may_be_reserved}
