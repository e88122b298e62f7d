"""Tests for the /api/admin endpoints."""

from datetime import date, datetime, timezone

from arena_booking import db
from tests.mocks.models import MOCK_ADMIN, MOCK_USER

_DAY = "2026-01-12"


def _book(client, slots):
    resp = client.post(
        "/api/bookings",
        json={"facility_id": 7, "booking_date": _DAY, "time_slots": slots},
    )
    assert resp.status_code == 201
    return resp.json()


async def _insert_legacy_group(created_at: str) -> None:
    """Two per-slot rows written by an old client in one request."""
    async with db.transaction():
        for hour in (16, 17):
            await db.insert_reservation(
                7,
                date(2026, 1, 12),
                status="pending" if hour == 16 else "approved",
                total_price=500,
                user_id=MOCK_USER.id,
                time_slots=[f"{hour}:00-{hour + 1}:00"],
                created_at=created_at,
            )


class TestStatusUpdate:
    def test_approve(self, client, sign_in):
        created = _book(client, ["13:00-14:00"])
        sign_in(MOCK_ADMIN)

        resp = client.patch(f"/api/admin/bookings/{created['id']}/status", json={"status": "approved"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"

        sign_in(MOCK_USER)
        notifications = client.get("/api/notifications").json()
        assert notifications["unread_count"] == 1
        assert notifications["items"][0]["title"] == "Booking approved"

    def test_repeat_approval_sends_nothing_new(self, client, sign_in, outbox):
        created = _book(client, ["13:00-14:00"])
        sign_in(MOCK_ADMIN)
        url = f"/api/admin/bookings/{created['id']}/status"

        assert client.patch(url, json={"status": "approved"}).status_code == 200
        assert client.patch(url, json={"status": "approved"}).status_code == 200

        sign_in(MOCK_USER)
        assert client.get("/api/notifications").json()["meta"]["total_items"] == 1
        assert outbox.await_count == 1

    def test_reject_frees_slot(self, client, sign_in):
        created = _book(client, ["13:00-14:00"])
        sign_in(MOCK_ADMIN)
        client.patch(f"/api/admin/bookings/{created['id']}/status", json={"status": "rejected"})

        avail = client.get("/api/availability", params={"facility_id": 7, "date": _DAY}).json()
        assert avail["booked_slots"] == []

    def test_invalid_transition(self, client, sign_in):
        created = _book(client, ["13:00-14:00"])
        sign_in(MOCK_ADMIN)
        url = f"/api/admin/bookings/{created['id']}/status"
        client.patch(url, json={"status": "rejected"})

        resp = client.patch(url, json={"status": "approved"})
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "InvalidTransition"

    def test_unknown_status(self, client, sign_in):
        created = _book(client, ["13:00-14:00"])
        sign_in(MOCK_ADMIN)
        resp = client.patch(f"/api/admin/bookings/{created['id']}/status", json={"status": "archived"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "InvalidStatus"

    def test_unknown_reservation(self, admin_client):
        resp = admin_client.patch("/api/admin/bookings/9999/status", json={"status": "approved"})
        assert resp.status_code == 404

    def test_requires_admin(self, client):
        created = _book(client, ["13:00-14:00"])
        resp = client.patch(f"/api/admin/bookings/{created['id']}/status", json={"status": "approved"})
        assert resp.status_code == 403


class TestGroupedBookings:
    def test_legacy_rows_grouped(self, client, sign_in, run):
        stamp = datetime(2026, 1, 10, 8, 0, tzinfo=timezone.utc).isoformat()
        run(_insert_legacy_group, stamp)
        _book(client, ["20:00-21:00"])

        sign_in(MOCK_ADMIN)
        resp = client.get("/api/admin/bookings")
        assert resp.status_code == 200
        groups = resp.json()["items"]
        assert len(groups) == 2

        legacy = next(g for g in groups if len(g["reservation_ids"]) == 2)
        assert legacy["time_slots"] == ["16:00-17:00", "17:00-18:00"]
        assert legacy["total_price"] == 1000
        assert legacy["status"] == "approved"
        assert legacy["start_time"].startswith("2026-01-12T16:00:00")
        assert legacy["end_time"].startswith("2026-01-12T18:00:00")

    def test_filter_by_status(self, client, sign_in, run):
        run(_insert_legacy_group, datetime(2026, 1, 10, tzinfo=timezone.utc).isoformat())
        _book(client, ["20:00-21:00"])

        sign_in(MOCK_ADMIN)
        resp = client.get("/api/admin/bookings", params={"status": "pending"})
        groups = resp.json()["items"]
        assert [g["time_slots"] for g in groups] == [["20:00-21:00"]]

    def test_requires_admin(self, client):
        assert client.get("/api/admin/bookings").status_code == 403
