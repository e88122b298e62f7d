"""Pydantic models for the Arena Booking API."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field

# ── Reservation statuses ──────────────────────────────────────────────────

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
CANCELLED = "cancelled"
REQUEST_TO_CANCEL = "request-to-cancel"
# Legacy statuses still present in historical rows.
CONFIRMED = "confirmed"
PAID = "paid"

TERMINAL_NEGATIVE_STATUSES = frozenset({REJECTED, CANCELLED})
OCCUPYING_STATUSES = frozenset({PENDING, APPROVED, CONFIRMED, PAID, REQUEST_TO_CANCEL})

# Spellings found in older clients and rows.
_STATUS_ALIASES = {
    "request to cancel": REQUEST_TO_CANCEL,
    "request_to_cancel": REQUEST_TO_CANCEL,
    "requestcancel": REQUEST_TO_CANCEL,
    "approve": APPROVED,
    "reject": REJECTED,
    "cancel": CANCELLED,
    "canceled": CANCELLED,
}


def canonical_status(raw: str | None) -> str:
    """Lower-cased status with legacy spellings mapped to their current name."""
    value = str(raw or "").strip().lower()
    return _STATUS_ALIASES.get(value, value)


# ── Facility statuses ─────────────────────────────────────────────────────

FACILITY_AVAILABLE = "available"
FACILITY_MAINTENANCE = "maintenance"
FACILITY_UNAVAILABLE = "unavailable"


# ── Common ────────────────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime


class PaginationMeta(BaseModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine-readable error code")
    message: str
    conflicts: list[str] | None = Field(None, description="Conflicting slot labels")


class ErrorResponse(BaseModel):
    error: ErrorDetail


class UserInfo(BaseModel):
    """The authenticated caller, decoded from the session token."""
    id: str
    role: str = "user"
    email: EmailStr | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class DirectoryUser(BaseModel):
    """A row of the external user directory."""
    id: str
    email: EmailStr | None = None
    username: str | None = None
    phone_number: str | None = None


# ── Facilities & slots ────────────────────────────────────────────────────


class Facility(BaseModel):
    id: int
    name: str
    hourly_rate: float = Field(..., ge=0, description="Price per one-hour slot")
    status: str = FACILITY_AVAILABLE


class Slot(BaseModel):
    start: str = Field(..., description="HH:MM")
    end: str = Field(..., description="HH:MM")
    label: str = Field(..., description="Canonical HH:MM-HH:MM label")


class SlotCatalogResponse(BaseModel):
    facility_id: int
    slots: list[Slot]


class AvailabilityResponse(BaseModel):
    facility_id: int
    booking_date: date
    booked_slots: list[str] = Field(..., description="Occupied slot labels")
    free_slots: list[str] = Field(..., description="Catalog slots still bookable")
    total_bookings: int = Field(..., description="Reservations contributing occupancy")


# ── Promotions ────────────────────────────────────────────────────────────


class Promotion(BaseModel):
    id: int
    name: str
    discount_amount: float | None = None
    discount_percentage: float | None = None
    valid_from: datetime
    valid_until: datetime
    status: str = "active"


# ── Reservations ──────────────────────────────────────────────────────────


class Reservation(BaseModel):
    id: int
    facility_id: int
    user_id: str | None = None
    booking_date: date
    time_slots: list[str] | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: str
    total_price: float
    promotion_id: int | None = None
    created_at: datetime


class BookingCreate(BaseModel):
    facility_id: int
    booking_date: date = Field(..., description="YYYY-MM-DD")
    time_slots: list[str] = Field(..., description='Slot ranges like "13:00 - 14:00"')
    total_price: float | None = Field(None, description="Price quoted to the client")
    user_id: str | None = None
    promotion_id: int | None = None


class StatusUpdate(BaseModel):
    status: str


class ReservationListResponse(BaseModel):
    items: list[Reservation]
    meta: PaginationMeta


class BookingGroup(BaseModel):
    """Rows created together, shown as one logical booking."""
    id: int
    created_at: datetime | None
    facility_id: int
    user_id: str | None = None
    booking_date: date
    start_time: datetime | None = None
    end_time: datetime | None = None
    time_slots: list[str]
    total_price: float
    status: str
    reservation_ids: list[int]


class BookingGroupListResponse(BaseModel):
    items: list[BookingGroup]
    meta: PaginationMeta


# ── Notifications ─────────────────────────────────────────────────────────


class Notification(BaseModel):
    id: int
    user_id: str
    title: str
    message: str
    type: str = "booking"
    is_read: bool = False
    related_id: int | None = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: list[Notification]
    meta: PaginationMeta
    unread_count: int


class MessageResponse(BaseModel):
    message: str
