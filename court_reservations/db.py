"""
SQLite database layer using aiosqlite.

Stores courts and court reservations.
Tables are created automatically on first connect.

The no-double-booking rule lives here, not in application code: a pair
of triggers rejects any insert or update that would leave two confirmed
reservations overlapping on the same court.  SQLite serialises writers,
so the check and the write are atomic across concurrent requests.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from uuid import UUID, uuid4

import aiosqlite

from court_reservations.config import DB_PATH
from court_reservations.models import Court, CourtReservation

logger = logging.getLogger(__name__)

# Statuses that hold a court.  Must match the triggers in _SCHEMA.
BLOCKING_STATUS = "confirmed"

_OVERLAP_MESSAGE = "court_reservation_overlap"


class ReservationOverlapError(Exception):
    """The storage constraint rejected a write that would double-book a court."""


# ── Module-level connection ───────────────────────────────────────────────

_db: aiosqlite.Connection | None = None


async def init_db() -> None:
    """Open the database and create tables if they don't exist."""
    global _db
    db_path = Path(DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    _db = await aiosqlite.connect(str(db_path))
    _db.row_factory = aiosqlite.Row  # dict-like rows
    await _db.execute("PRAGMA journal_mode=WAL")
    await _db.execute("PRAGMA foreign_keys=ON")
    await _db.execute("PRAGMA busy_timeout=5000")

    await _db.executescript(_SCHEMA)
    await _db.commit()
    logger.info("Database initialized at %s", db_path)


async def close_db() -> None:
    """Close the database connection."""
    global _db
    if _db is not None:
        await _db.close()
        _db = None
        logger.info("Database connection closed")


def get_db() -> aiosqlite.Connection:
    """Return the active database connection (must call init_db first)."""
    assert _db is not None, "Database not initialized, call init_db() first"
    return _db


# ── Schema ────────────────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS courts (
    id              TEXT PRIMARY KEY,
    club_id         TEXT NOT NULL,
    name            TEXT NOT NULL,
    active          INTEGER NOT NULL DEFAULT 1,
    created_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS court_reservations (
    id                  TEXT PRIMARY KEY,
    court_id            TEXT NOT NULL,
    club_id             TEXT NOT NULL,
    user_id             TEXT NOT NULL,
    start_time          TEXT NOT NULL,  -- court-local, YYYY-MM-DDTHH:MM:SS
    end_time            TEXT NOT NULL,
    reservation_date    TEXT NOT NULL,
    duration_hours      REAL NOT NULL,
    purpose             TEXT,
    match_type          TEXT,
    participants        TEXT,           -- JSON array
    guest_count         INTEGER NOT NULL DEFAULT 0,
    special_requests    TEXT,
    equipment_needed    TEXT,           -- JSON array
    status              TEXT NOT NULL DEFAULT 'confirmed',
    booking_source      TEXT NOT NULL DEFAULT 'web',
    recurrence_group_id TEXT,
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL,
    CHECK (end_time > start_time),
    FOREIGN KEY (court_id) REFERENCES courts(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_res_court_time
    ON court_reservations(court_id, start_time, end_time);
CREATE INDEX IF NOT EXISTS idx_res_user ON court_reservations(user_id);
CREATE INDEX IF NOT EXISTS idx_res_group ON court_reservations(recurrence_group_id);

CREATE TRIGGER IF NOT EXISTS court_reservations_no_overlap_insert
BEFORE INSERT ON court_reservations
WHEN NEW.status = 'confirmed'
BEGIN
    SELECT RAISE(ABORT, 'court_reservation_overlap')
    WHERE EXISTS (
        SELECT 1 FROM court_reservations
        WHERE court_id = NEW.court_id
          AND status = 'confirmed'
          AND start_time < NEW.end_time
          AND NEW.start_time < end_time
    );
END;

CREATE TRIGGER IF NOT EXISTS court_reservations_no_overlap_update
BEFORE UPDATE OF court_id, start_time, end_time, status ON court_reservations
WHEN NEW.status = 'confirmed'
BEGIN
    SELECT RAISE(ABORT, 'court_reservation_overlap')
    WHERE EXISTS (
        SELECT 1 FROM court_reservations
        WHERE court_id = NEW.court_id
          AND id != NEW.id
          AND status = 'confirmed'
          AND start_time < NEW.end_time
          AND NEW.start_time < end_time
    );
END;
"""


# ── Helpers ───────────────────────────────────────────────────────────────


def _json_or_none(value: list | None) -> str | None:
    """Serialize a list to JSON or return None."""
    if value is None:
        return None
    return json.dumps([str(v) for v in value])


def _from_json(raw: str | None) -> list | None:
    """Parse a JSON string back to a list, or return None."""
    if raw is None:
        return None
    return json.loads(raw)


def _wall(dt: datetime) -> str:
    """Court-local wall-clock time; any offset is dropped so text order is time order."""
    return dt.replace(tzinfo=None, microsecond=0).isoformat()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_court(row: aiosqlite.Row) -> Court:
    return Court(
        id=row["id"],
        club_id=row["club_id"],
        name=row["name"],
        active=bool(row["active"]),
    )


def _row_to_reservation(row: aiosqlite.Row) -> CourtReservation:
    """Convert a database row to a CourtReservation model."""
    return CourtReservation(
        id=UUID(row["id"]),
        court_id=row["court_id"],
        club_id=row["club_id"],
        user_id=row["user_id"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        reservation_date=row["reservation_date"],
        duration_hours=row["duration_hours"],
        purpose=row["purpose"],
        match_type=row["match_type"],
        participants=_from_json(row["participants"]) or [],
        guest_count=row["guest_count"],
        special_requests=row["special_requests"],
        equipment_needed=_from_json(row["equipment_needed"]),
        status=row["status"],
        booking_source=row["booking_source"],
        recurrence_group_id=row["recurrence_group_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


# ══════════════════════════════════════════════════════════════════════════
#                    COURT REPOSITORY
# ══════════════════════════════════════════════════════════════════════════
# Courts are managed by the federation platform; these exist so the
# engine (and tests) can read and seed them.


async def create_court(
    club_id: str,
    name: str,
    *,
    court_id: str | None = None,
    active: bool = True,
) -> Court:
    """Insert a court and return it."""
    db = get_db()
    court_id = court_id or str(uuid4())
    await db.execute(
        "INSERT INTO courts (id, club_id, name, active, created_at) VALUES (?, ?, ?, ?, ?)",
        (court_id, club_id, name, int(active), _now_iso()),
    )
    await db.commit()
    return await get_court(court_id)  # type: ignore[return-value]


async def get_court(court_id: str) -> Court | None:
    """Fetch a single court by ID."""
    db = get_db()
    async with db.execute("SELECT * FROM courts WHERE id = ?", (court_id,)) as cur:
        row = await cur.fetchone()
    return _row_to_court(row) if row else None


# ══════════════════════════════════════════════════════════════════════════
#                    RESERVATION REPOSITORY
# ══════════════════════════════════════════════════════════════════════════


async def insert_reservation(
    *,
    court_id: str,
    club_id: str,
    user_id: str,
    start_time: datetime,
    end_time: datetime,
    duration_hours: float,
    purpose: str | None = None,
    match_type: str | None = None,
    participants: list[str] | None = None,
    guest_count: int = 0,
    special_requests: str | None = None,
    equipment_needed: list[str] | None = None,
    status: str = BLOCKING_STATUS,
    recurrence_group_id: UUID | None = None,
) -> CourtReservation:
    """
    Insert a reservation iff it does not overlap a confirmed one on the same court.

    Raises ReservationOverlapError when the storage constraint rejects the
    row.  Any other database failure propagates as an aiosqlite.Error.
    """
    db = get_db()
    res_id = str(uuid4())
    now = _now_iso()

    try:
        await db.execute(
            """
            INSERT INTO court_reservations (
                id, court_id, club_id, user_id,
                start_time, end_time, reservation_date, duration_hours,
                purpose, match_type, participants, guest_count,
                special_requests, equipment_needed,
                status, booking_source, recurrence_group_id,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 'web', ?, ?, ?)
            """,
            (
                res_id, court_id, club_id, user_id,
                _wall(start_time), _wall(end_time),
                start_time.date().isoformat(), duration_hours,
                purpose, match_type,
                _json_or_none(participants), guest_count,
                special_requests, _json_or_none(equipment_needed),
                status,
                str(recurrence_group_id) if recurrence_group_id else None,
                now, now,
            ),
        )
    except aiosqlite.IntegrityError as exc:
        # Only the failing statement is aborted. Rolling back here would
        # discard sibling inserts pending on the shared connection.
        await db.commit()
        if _OVERLAP_MESSAGE in str(exc):
            raise ReservationOverlapError(
                f"Court {court_id} is already booked between "
                f"{_wall(start_time)} and {_wall(end_time)}"
            ) from exc
        raise
    await db.commit()
    reservation = await get_reservation(res_id)
    if reservation is None:
        # The insert was lost with a transaction rolled back by another statement.
        raise aiosqlite.DatabaseError(f"Reservation {res_id} was not persisted")
    return reservation


async def get_reservation(res_id: str) -> CourtReservation | None:
    """Fetch a single reservation by ID."""
    db = get_db()
    async with db.execute(
        "SELECT * FROM court_reservations WHERE id = ?", (res_id,)
    ) as cur:
        row = await cur.fetchone()
    return _row_to_reservation(row) if row else None


async def list_overlapping_reservations(
    court_id: str,
    start_time: datetime,
    end_time: datetime,
) -> list[CourtReservation]:
    """Confirmed reservations on a court intersecting [start_time, end_time), oldest first."""
    db = get_db()
    async with db.execute(
        """
        SELECT * FROM court_reservations
        WHERE court_id = ? AND status = ?
          AND start_time < ? AND ? < end_time
        ORDER BY start_time
        """,
        (court_id, BLOCKING_STATUS, _wall(end_time), _wall(start_time)),
    ) as cur:
        rows = await cur.fetchall()
    return [_row_to_reservation(r) for r in rows]


async def list_user_reservations(
    user_id: str,
    *,
    status: str | None = None,
    court_id: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    recurrence_group_id: UUID | None = None,
) -> list[CourtReservation]:
    """List a user's reservations, with optional filters, in start order."""
    db = get_db()
    sql = "SELECT * FROM court_reservations WHERE user_id = ?"
    params: list = [user_id]

    if status is not None:
        sql += " AND status = ?"
        params.append(status)
    if court_id is not None:
        sql += " AND court_id = ?"
        params.append(court_id)
    if date_from is not None:
        sql += " AND reservation_date >= ?"
        params.append(date_from.isoformat())
    if date_to is not None:
        sql += " AND reservation_date <= ?"
        params.append(date_to.isoformat())
    if recurrence_group_id is not None:
        sql += " AND recurrence_group_id = ?"
        params.append(str(recurrence_group_id))

    sql += " ORDER BY start_time"

    async with db.execute(sql, params) as cur:
        rows = await cur.fetchall()
    return [_row_to_reservation(r) for r in rows]
