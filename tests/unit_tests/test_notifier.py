"""Tests for status-change notification texts."""

from arena_booking.services.notifier import build_message, describe_window
from tests.mocks.models import MOCK_FACILITY, make_reservation


class TestBuildMessage:
    def test_approved(self):
        reservation = make_reservation(time_slots=["13:00-14:00", "14:00-15:00"])
        title, message = build_message(reservation, MOCK_FACILITY, "approved")
        assert title == "Booking approved"
        assert message == (
            "Your booking of Court 7 on Mon 12 Jan 2026, 13:00–15:00 "
            "was approved by an administrator."
        )

    def test_cancelled(self):
        reservation = make_reservation(time_slots=["23:00-00:00"])
        title, message = build_message(reservation, MOCK_FACILITY, "cancelled")
        assert title == "Booking cancelled"
        assert "23:00–00:00" in message

    def test_facility_unknown(self):
        reservation = make_reservation(time_slots=["13:00-14:00"])
        _, message = build_message(reservation, None, "rejected")
        assert "facility #7" in message

    def test_window_without_time_data(self):
        assert describe_window(make_reservation()) == "Mon 12 Jan 2026"
