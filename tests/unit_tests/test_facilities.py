"""Tests for the /api/facilities endpoints."""


class TestFacilities:
    def test_list(self, client):
        resp = client.get("/api/facilities")
        assert resp.status_code == 200
        ids = [f["id"] for f in resp.json()]
        assert ids == [7, 8, 9]

    def test_get(self, client):
        resp = client.get("/api/facilities/7")
        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "Court 7"
        assert data["hourly_rate"] == 500

    def test_get_unknown(self, client):
        resp = client.get("/api/facilities/999")
        assert resp.status_code == 404


class TestFacilitySlots:
    def test_catalog(self, client):
        resp = client.get("/api/facilities/7/slots")
        assert resp.status_code == 200
        slots = resp.json()["slots"]
        assert len(slots) == 11
        assert slots[0] == {"start": "13:00", "end": "14:00", "label": "13:00-14:00"}
        assert slots[-1]["label"] == "23:00-00:00"

    def test_catalog_unknown_facility(self, client):
        resp = client.get("/api/facilities/999/slots")
        assert resp.status_code == 404
