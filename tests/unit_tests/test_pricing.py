"""Tests for booking price and promotion discounts."""

from datetime import datetime, timedelta, timezone

from arena_booking.services.pricing import (
    base_price,
    calculate_discount,
    calculate_final_price,
    is_promotion_valid,
)
from tests.mocks.models import make_promotion


class TestBasePrice:
    def test_rate_times_hours(self):
        assert base_price(500, 3) == 1500

    def test_fractional_rate(self):
        assert base_price(199.99, 2) == 399.98


class TestDiscounts:
    def test_fixed_amount(self):
        promo = make_promotion(discount_amount=200)
        assert calculate_final_price(1500, promo) == 1300

    def test_percentage(self):
        promo = make_promotion(discount_percentage=50)
        assert calculate_final_price(1500, promo) == 750

    def test_fixed_amount_wins_over_percentage(self):
        promo = make_promotion(discount_amount=100, discount_percentage=50)
        assert calculate_discount(1500, promo) == 100

    def test_total_never_negative(self):
        promo = make_promotion(discount_amount=5000)
        assert calculate_discount(1500, promo) == 1500
        assert calculate_final_price(1500, promo) == 0

    def test_no_promotion(self):
        assert calculate_final_price(1000, None) == 1000

    def test_promotion_without_discount(self):
        assert calculate_final_price(1000, make_promotion()) == 1000


class TestPromotionValidity:
    def test_active_in_window(self):
        assert is_promotion_valid(make_promotion(discount_amount=10))

    def test_inactive(self):
        assert not is_promotion_valid(make_promotion(discount_amount=10, status="inactive"))

    def test_expired(self):
        promo = make_promotion(discount_amount=10)
        later = datetime.now(timezone.utc) + timedelta(days=60)
        assert not is_promotion_valid(promo, now=later)

    def test_naive_window_read_as_utc(self):
        promo = make_promotion(discount_amount=10).model_copy(update={
            "valid_from": datetime(2026, 1, 1),
            "valid_until": datetime(2026, 2, 1),
        })
        assert is_promotion_valid(promo, now=datetime(2026, 1, 15, tzinfo=timezone.utc))

    def test_none(self):
        assert not is_promotion_valid(None)
