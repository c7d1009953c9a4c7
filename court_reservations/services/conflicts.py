"""
Advisory conflict detection for court reservations.

Answers "which of these dates would collide on this court?" and "which
hourly slots are still free on this day?".  Reads only; results can be
stale by the time a booking is written, so the batch creator always
relies on the storage constraint for the final word.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from uuid import UUID

from court_reservations import db
from court_reservations.config import COURT_CLOSE_HOUR, COURT_OPEN_HOUR
from court_reservations.errors import BookingValidationError
from court_reservations.models import CourtReservation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeWindow:
    """A time-of-day start plus a duration, applied to any calendar date."""

    start: time
    duration_hours: float

    def __post_init__(self) -> None:
        if self.duration_hours <= 0:
            raise BookingValidationError("duration_hours", "duration_hours must be positive")

    @classmethod
    def parse(cls, hhmm: str, duration_hours: float) -> TimeWindow:
        hours, minutes = (int(part) for part in hhmm.split(":"))
        return cls(start=time(hours, minutes), duration_hours=duration_hours)

    @property
    def duration(self) -> timedelta:
        return timedelta(hours=self.duration_hours)

    def label(self) -> str:
        return self.start.strftime("%H:%M")

    def on(self, day: date) -> tuple[datetime, datetime]:
        """Half-open [start, end) interval on ``day`` (may end after midnight)."""
        start = datetime.combine(day, self.start)
        try:
            return start, start + self.duration
        except OverflowError:
            raise BookingValidationError(
                "start_time",
                f"A booking at {self.label()} on {day.isoformat()} would end "
                "past the last supported date",
            ) from None


def overlaps(
    start: datetime,
    end: datetime,
    other_start: datetime,
    other_end: datetime,
) -> bool:
    """Half-open overlap: touching endpoints (18:00 end vs 18:00 start) do not collide."""
    return other_start < end and start < other_end


@dataclass(frozen=True)
class Conflict:
    date: date
    start: datetime
    end: datetime
    reservation_ids: tuple[UUID, ...]


class ConflictChecker:
    """Read-only overlap queries against the reservation store."""

    async def check(
        self,
        court_id: str,
        window: TimeWindow,
        dates: Iterable[date],
    ) -> list[Conflict]:
        """
        Return one Conflict per candidate date whose interval overlaps a
        confirmed reservation on ``court_id``, in input order.

        All candidates are covered by a single range query.
        """
        candidates = [(day, *window.on(day)) for day in dates]
        if not candidates:
            return []

        span_start = min(start for _, start, _ in candidates)
        span_end = max(end for _, _, end in candidates)
        existing = await db.list_overlapping_reservations(court_id, span_start, span_end)

        conflicts: list[Conflict] = []
        for day, start, end in candidates:
            hits = self._colliding(existing, start, end)
            if hits:
                conflicts.append(
                    Conflict(
                        date=day,
                        start=start,
                        end=end,
                        reservation_ids=tuple(r.id for r in hits),
                    )
                )

        logger.debug(
            "Conflict check court=%s window=%s: %d/%d dates conflicting",
            court_id, window.label(), len(conflicts), len(candidates),
        )
        return conflicts

    async def conflicting_ids(
        self,
        court_id: str,
        start: datetime,
        end: datetime,
    ) -> tuple[UUID, ...]:
        """Ids of confirmed reservations overlapping one concrete interval."""
        existing = await db.list_overlapping_reservations(court_id, start, end)
        return tuple(r.id for r in existing)

    async def available_slots(
        self,
        court_id: str,
        day: date,
        duration_hours: float = 1,
    ) -> list[tuple[datetime, datetime]]:
        """
        On-the-hour slots within opening hours that fit ``duration_hours``
        before closing and do not overlap a confirmed reservation.
        """
        duration = timedelta(hours=duration_hours)
        opening = datetime.combine(day, time(COURT_OPEN_HOUR))
        closing = datetime.combine(day, time(0)) + timedelta(hours=COURT_CLOSE_HOUR)

        existing = await db.list_overlapping_reservations(court_id, opening, closing)

        slots: list[tuple[datetime, datetime]] = []
        start = opening
        last_start = closing - duration
        while start <= last_start:
            end = start + duration
            if not self._colliding(existing, start, end):
                slots.append((start, end))
            start += timedelta(hours=1)
        return slots

    @staticmethod
    def _colliding(
        existing: list[CourtReservation],
        start: datetime,
        end: datetime,
    ) -> list[CourtReservation]:
        return [r for r in existing if overlaps(start, end, r.start_time, r.end_time)]
