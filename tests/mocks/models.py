"""
Pre-built model instances for use in tests.

Import individual fixtures or use the helpers to seed the database:

    from tests.mocks.models import MOCK_COURT, ANCHOR, make_template, seed_courts
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from uuid import NAMESPACE_URL, UUID, uuid5

from court_reservations import db
from court_reservations.models import Court, CourtReservation, MatchType, UserInfo
from court_reservations.services.booking import BookingTemplate

# ── Deterministic UUIDs ────────────────────────────────────────────────────
# Namespace for generating stable test UUIDs
_TEST_NS = UUID("00000000-0000-0000-0000-000000000000")


def _uuid(name: str) -> UUID:
    return uuid5(_TEST_NS, name)


# ── Users ──────────────────────────────────────────────────────────────────

MOCK_USER = UserInfo(id=str(_uuid("user-player")))
MOCK_USER_2 = UserInfo(id=str(_uuid("user-coach")))

# ── Courts ─────────────────────────────────────────────────────────────────

MOCK_COURT = Court(
    id=str(_uuid("court-1")),
    club_id=str(_uuid("club-1")),
    name="Centre Court",
    active=True,
)

MOCK_COURT_2 = Court(
    id=str(_uuid("court-2")),
    club_id=str(_uuid("club-1")),
    name="Court 2",
    active=True,
)

MOCK_COURT_CLOSED = Court(
    id=str(_uuid("court-closed")),
    club_id=str(_uuid("club-1")),
    name="Court under renovation",
    active=False,
)

MOCK_COURTS = [MOCK_COURT, MOCK_COURT_2, MOCK_COURT_CLOSED]

# ── Times ──────────────────────────────────────────────────────────────────

# A Monday evening.
ANCHOR = datetime(2025, 3, 3, 18, 0)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute)


# ── Factories ──────────────────────────────────────────────────────────────


def make_template(
    court: Court = MOCK_COURT,
    user: UserInfo = MOCK_USER,
    duration_hours: float = 1.5,
    **overrides,
) -> BookingTemplate:
    """BookingTemplate with sensible defaults."""
    fields = dict(
        court_id=court.id,
        club_id=court.club_id,
        user_id=user.id,
        duration_hours=duration_hours,
        purpose="Weekly practice",
        match_type=MatchType.DOUBLES,
        participants=(MOCK_USER_2.id,),
        guest_count=1,
    )
    fields.update(overrides)
    return BookingTemplate(**fields)


async def seed_courts(courts: list[Court] = MOCK_COURTS) -> None:
    for court in courts:
        await db.create_court(
            court.club_id, court.name, court_id=court.id, active=court.active
        )


async def book(
    start: datetime,
    duration_hours: float = 1,
    court: Court = MOCK_COURT,
    user: UserInfo = MOCK_USER_2,
    status: str = "confirmed",
) -> CourtReservation:
    """Insert a single pre-existing reservation."""
    return await db.insert_reservation(
        court_id=court.id,
        club_id=court.club_id,
        user_id=user.id,
        start_time=start,
        end_time=start + timedelta(hours=duration_hours),
        duration_hours=duration_hours,
        status=status,
    )
