"""
Booking price and promotion discount rules.

A fixed-amount discount takes precedence over a percentage one.  The
discount never exceeds the base price, so the total never goes negative.
"""

from __future__ import annotations

from datetime import datetime, timezone

from arena_booking.models import Promotion


def base_price(hourly_rate: float, slot_count: int) -> float:
    return round(hourly_rate * slot_count, 2)


def is_promotion_valid(promotion: Promotion | None, now: datetime | None = None) -> bool:
    """Active and inside its validity window."""
    if promotion is None or promotion.status != "active":
        return False
    now = now or datetime.now(timezone.utc)
    valid_from = _aware(promotion.valid_from)
    valid_until = _aware(promotion.valid_until)
    return valid_from <= now <= valid_until


def calculate_discount(price: float, promotion: Promotion) -> float:
    if promotion.discount_amount and promotion.discount_amount > 0:
        discount = promotion.discount_amount
    elif promotion.discount_percentage and promotion.discount_percentage > 0:
        discount = price * promotion.discount_percentage / 100
    else:
        discount = 0.0
    return min(discount, price)


def calculate_final_price(price: float, promotion: Promotion | None) -> float:
    if promotion is None:
        return price
    return round(max(0.0, price - calculate_discount(price, promotion)), 2)


def _aware(value: datetime) -> datetime:
    # Naive promotion windows are stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
