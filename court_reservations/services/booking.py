"""
Recurring court bookings.

A recurring request is N independent bookings, not one atomic unit:

1.  Validate the booking content and the recurrence rule.
2.  Expand the rule into dates (capped at SAFETY_CAP).
3.  Run the advisory conflict check; dates already taken are skipped.
4.  Write every remaining date concurrently.  Each write is conditional
    at the storage layer, so a booking that lost a race is skipped as a
    conflict while its siblings still go through.

Already-written occurrences are never rolled back, even if the request
is cancelled half way.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID, uuid4

import aiosqlite

from court_reservations import db
from court_reservations.config import BOOKING_WRITE_CONCURRENCY
from court_reservations.errors import BookingValidationError
from court_reservations.models import CourtReservation, MatchType, SkipReason
from court_reservations.services.conflicts import Conflict, ConflictChecker, TimeWindow
from court_reservations.services.recurrence import Expansion, RecurrenceRule, expand

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingTemplate:
    """What every occurrence of a recurring booking is created with."""

    court_id: str
    club_id: str
    user_id: str
    duration_hours: float
    purpose: str | None = None
    match_type: MatchType | None = MatchType.PRACTICE
    participants: tuple[str, ...] = ()
    guest_count: int = 0
    special_requests: str | None = None
    equipment_needed: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if self.duration_hours <= 0:
            raise BookingValidationError("duration_hours", "duration_hours must be positive")
        if self.guest_count < 0:
            raise BookingValidationError("guest_count", "guest_count cannot be negative")


@dataclass(frozen=True)
class Skipped:
    date: date
    reason: SkipReason
    reservation_ids: tuple[UUID, ...] = ()
    detail: str | None = None


@dataclass
class BatchResult:
    recurrence_group_id: UUID
    window: TimeWindow
    occurrence_count: int
    truncated: bool
    created: list[CourtReservation] = field(default_factory=list)
    skipped: list[Skipped] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)


class BatchReservationCreator:
    """Expands a recurring request and books every free occurrence."""

    def __init__(
        self,
        checker: ConflictChecker | None = None,
        *,
        concurrency: int = BOOKING_WRITE_CONCURRENCY,
    ) -> None:
        self._checker = checker or ConflictChecker()
        self._concurrency = max(1, concurrency)

    def preview(self, rule: RecurrenceRule, anchor: datetime) -> Expansion:
        """Dates a ``create`` call with the same rule and anchor would try to book."""
        return expand(rule, anchor)

    async def create(
        self,
        template: BookingTemplate,
        rule: RecurrenceRule,
        anchor: datetime,
    ) -> BatchResult:
        # Validation errors raise out of here before any I/O.
        anchor = anchor.replace(tzinfo=None)
        window = TimeWindow(start=anchor.time().replace(microsecond=0),
                            duration_hours=template.duration_hours)
        expansion = expand(rule, anchor)

        result = BatchResult(
            recurrence_group_id=uuid4(),
            window=window,
            occurrence_count=len(expansion),
            truncated=expansion.truncated,
        )
        if expansion.truncated:
            logger.info(
                "Recurrence for court %s truncated to %d occurrences",
                template.court_id, len(expansion),
            )

        conflicts = await self._checker.check(template.court_id, window, expansion.dates)
        known: dict[date, Conflict] = {c.date: c for c in conflicts}

        semaphore = asyncio.Semaphore(self._concurrency)
        outcomes = await asyncio.gather(
            *(
                self._book_occurrence(template, window, day, known.get(day), result, semaphore)
                for day in expansion.dates
            )
        )

        for outcome in outcomes:
            if isinstance(outcome, Skipped):
                result.skipped.append(outcome)
            else:
                result.created.append(outcome)

        logger.info(
            "Recurring booking %s on court %s for user %s: %d created, %d skipped "
            "(of %d occurrences%s)",
            result.recurrence_group_id,
            template.court_id,
            template.user_id,
            result.created_count,
            len(result.skipped),
            result.occurrence_count,
            ", truncated" if result.truncated else "",
        )
        return result

    async def _book_occurrence(
        self,
        template: BookingTemplate,
        window: TimeWindow,
        day: date,
        known_conflict: Conflict | None,
        result: BatchResult,
        semaphore: asyncio.Semaphore,
    ) -> CourtReservation | Skipped:
        if known_conflict is not None:
            return Skipped(
                date=day,
                reason=SkipReason.CONFLICT,
                reservation_ids=known_conflict.reservation_ids,
                detail=_conflict_detail(known_conflict.reservation_ids, day),
            )

        start, end = window.on(day)
        async with semaphore:
            try:
                return await db.insert_reservation(
                    court_id=template.court_id,
                    club_id=template.club_id,
                    user_id=template.user_id,
                    start_time=start,
                    end_time=end,
                    duration_hours=template.duration_hours,
                    purpose=template.purpose,
                    match_type=template.match_type.value if template.match_type else None,
                    participants=list(template.participants),
                    guest_count=template.guest_count,
                    special_requests=template.special_requests,
                    equipment_needed=(
                        list(template.equipment_needed)
                        if template.equipment_needed is not None
                        else None
                    ),
                    recurrence_group_id=result.recurrence_group_id,
                )
            except db.ReservationOverlapError:
                # Someone else got the slot after the advisory check.
                try:
                    ids = await self._checker.conflicting_ids(template.court_id, start, end)
                except aiosqlite.Error:
                    logger.warning("Could not look up the reservation that won %s", day)
                    ids = ()
                logger.info(
                    "Occurrence %s on court %s lost to a concurrent booking",
                    day.isoformat(), template.court_id,
                )
                return Skipped(
                    date=day,
                    reason=SkipReason.CONFLICT,
                    reservation_ids=ids,
                    detail=_conflict_detail(ids, day),
                )
            except aiosqlite.Error as exc:
                logger.warning(
                    "Storage error booking court %s on %s: %s",
                    template.court_id, day.isoformat(), exc,
                )
                return Skipped(
                    date=day,
                    reason=SkipReason.STORAGE_ERROR,
                    detail=str(exc),
                )


def _conflict_detail(ids: tuple[UUID, ...], day: date) -> str:
    if not ids:
        return f"Court already booked on {day.isoformat()}"
    joined = ", ".join(str(i) for i in ids)
    return f"Conflicts with reservation {joined} on {day.isoformat()}"
