"""Tests for the /api/courts endpoints."""

from datetime import date

from tests.mocks.models import MOCK_COURT, MOCK_COURT_CLOSED, at, book


class TestGetCourt:
    def test_get_existing_court(self, client):
        resp = client.get(f"/api/courts/{MOCK_COURT.id}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "Centre Court"
        assert data["club_id"] == MOCK_COURT.club_id
        assert data["active"] is True

    def test_inactive_court_is_still_visible(self, client):
        resp = client.get(f"/api/courts/{MOCK_COURT_CLOSED.id}")
        assert resp.status_code == 200
        assert resp.json()["active"] is False

    def test_get_court_not_found(self, client):
        resp = client.get("/api/courts/00000000-0000-0000-0000-000000000099")
        assert resp.status_code == 404


class TestAvailability:
    def test_free_day(self, client):
        resp = client.get(
            f"/api/courts/{MOCK_COURT.id}/availability",
            params={"date": "2025-03-03"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["date"] == "2025-03-03"
        assert data["duration_hours"] == 1
        assert len(data["slots"]) == 16
        assert data["slots"][0] == {
            "start_time": "2025-03-03T06:00:00",
            "end_time": "2025-03-03T07:00:00",
        }

    def test_booked_slot_missing(self, client, seed):
        seed(book, at(date(2025, 3, 3), 18))

        resp = client.get(
            f"/api/courts/{MOCK_COURT.id}/availability",
            params={"date": "2025-03-03", "duration_hours": 2},
        )
        starts = [s["start_time"][11:16] for s in resp.json()["slots"]]
        assert "16:00" in starts  # 16:00–18:00 ends as the booking starts
        assert "17:00" not in starts
        assert "18:00" not in starts
        assert "19:00" in starts

    def test_date_required(self, client):
        resp = client.get(f"/api/courts/{MOCK_COURT.id}/availability")
        assert resp.status_code == 422

    def test_unknown_court(self, client):
        resp = client.get("/api/courts/no-such-court/availability", params={"date": "2025-03-03"})
        assert resp.status_code == 404
