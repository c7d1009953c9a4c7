"""Tests for session-cookie authentication on the reservation endpoints."""

from datetime import datetime, timedelta, timezone

import jwt

from court_reservations.config import JWT_ALGORITHM, JWT_SECRET
from tests.mocks.models import MOCK_USER


def _token(sub: str | None = MOCK_USER.id, expires_in: timedelta = timedelta(hours=1), secret=JWT_SECRET) -> str:
    payload = {"exp": datetime.now(timezone.utc) + expires_in}
    if sub is not None:
        payload["sub"] = sub
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


class TestSession:
    def test_no_cookie(self, unauthed_client):
        resp = unauthed_client.get("/api/court-reservations")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Authentication required."

    def test_valid_cookie(self, unauthed_client):
        unauthed_client.cookies.set("session", _token())
        resp = unauthed_client.get("/api/court-reservations")
        assert resp.status_code == 200
        assert resp.json()["items"] == []

    def test_expired_cookie(self, unauthed_client):
        unauthed_client.cookies.set("session", _token(expires_in=timedelta(minutes=-5)))
        resp = unauthed_client.get("/api/court-reservations")
        assert resp.status_code == 401
        assert "expired" in resp.json()["detail"]

    def test_wrong_signature(self, unauthed_client):
        unauthed_client.cookies.set("session", _token(secret="not-the-secret"))
        resp = unauthed_client.get("/api/court-reservations")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid session. Please log in again."

    def test_missing_subject(self, unauthed_client):
        unauthed_client.cookies.set("session", _token(sub=None))
        resp = unauthed_client.get("/api/court-reservations")
        assert resp.status_code == 401

    def test_booking_requires_session(self, unauthed_client):
        resp = unauthed_client.post(
            "/api/court-reservations/check-conflicts",
            json={
                "court_id": "any",
                "dates": ["2025-03-03"],
                "start_time": "18:00",
                "duration_hours": 1,
            },
        )
        assert resp.status_code == 401

    def test_booking_as_cookie_subject(self, unauthed_client):
        unauthed_client.cookies.set("session", _token(sub="someone-else"))
        from tests.mocks.models import MOCK_COURT

        resp = unauthed_client.post(
            "/api/court-reservations/recurring",
            json={
                "court_id": MOCK_COURT.id,
                "start_time": "2025-03-03T18:00:00",
                "recurrence": {"pattern": "daily", "max_occurrences": 1},
            },
        )
        assert resp.status_code == 201
        assert resp.json()["created"][0]["user_id"] == "someone-else"
