"""
Court reservation endpoints – conflict checks and recurring bookings.
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from court_reservations import db
from court_reservations.config import DEFAULT_MAX_OCCURRENCES
from court_reservations.dependencies import CurrentUser, PaginationParams, paginate
from court_reservations.errors import RecurrenceValidationError
from court_reservations.models import (
    ConflictCheckRequest,
    ConflictCheckResponse,
    ConflictEntry,
    Court,
    CourtReservation,
    CourtReservationListResponse,
    RecurrencePreviewRequest,
    RecurrencePreviewResponse,
    RecurrenceRequest,
    RecurringReservationRequest,
    RecurringReservationResponse,
    ReservationStatus,
    SkippedOccurrence,
)
from court_reservations.rate_limit import BOOKING, DEFAULT, limiter
from court_reservations.services.booking import BatchReservationCreator, BookingTemplate
from court_reservations.services.conflicts import ConflictChecker, TimeWindow
from court_reservations.services.recurrence import (
    CountLimit,
    DateLimit,
    RecurrencePattern,
    RecurrenceRule,
    validate,
)

router = APIRouter(prefix="/api/court-reservations", tags=["court-reservations"])

checker = ConflictChecker()
creator = BatchReservationCreator(checker)


def to_rule(recurrence: RecurrenceRequest) -> RecurrenceRule:
    """Build a RecurrenceRule from its wire form (exactly one termination)."""
    if recurrence.end_date is not None and recurrence.max_occurrences is not None:
        raise RecurrenceValidationError(
            "recurrence", "Specify either end_date or max_occurrences, not both"
        )
    if recurrence.end_date is not None:
        termination = DateLimit(recurrence.end_date)
    else:
        termination = CountLimit(recurrence.max_occurrences or DEFAULT_MAX_OCCURRENCES)

    days = recurrence.days_of_week or []
    return RecurrenceRule(
        pattern=recurrence.pattern,
        interval=recurrence.interval,
        days_of_week=frozenset(days) if recurrence.pattern is RecurrencePattern.WEEKLY else frozenset(),
        termination=termination,
    )


async def _get_bookable_court(court_id: str) -> Court:
    court = await db.get_court(court_id)
    if court is None or not court.active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Court {court_id} not found",
        )
    return court


@router.post(
    "/check-conflicts",
    response_model=ConflictCheckResponse,
    operation_id="checkBookingConflicts",
    summary="Report which dates collide with existing reservations (advisory)",
)
@limiter.limit(DEFAULT)
async def check_conflicts(
    request: Request,
    body: ConflictCheckRequest,
    current_user: CurrentUser,
) -> ConflictCheckResponse:
    await _get_bookable_court(body.court_id)
    window = TimeWindow.parse(body.start_time, body.duration_hours)
    conflicts = await checker.check(body.court_id, window, body.dates)

    return ConflictCheckResponse(
        conflicts=[
            ConflictEntry(date=c.date, time=window.label(), conflicting_reservation_id=rid)
            for c in conflicts
            for rid in c.reservation_ids
        ]
    )


@router.post(
    "/recurring/preview",
    response_model=RecurrencePreviewResponse,
    operation_id="previewRecurrence",
    summary="List the dates a recurring booking would cover",
)
async def preview_recurrence(body: RecurrencePreviewRequest) -> RecurrencePreviewResponse:
    expansion = creator.preview(to_rule(body.recurrence), body.start_time)
    return RecurrencePreviewResponse(
        dates=list(expansion.dates),
        truncated=expansion.truncated,
    )


@router.post(
    "/recurring",
    response_model=RecurringReservationResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createRecurringReservation",
    summary="Book every free occurrence of a recurring reservation",
)
@limiter.limit(BOOKING)
async def create_recurring_reservation(
    request: Request,
    body: RecurringReservationRequest,
    current_user: CurrentUser,
) -> RecurringReservationResponse:
    """
    Creates one reservation per free occurrence. Occurrences that collide
    with an existing booking, or whose write fails, come back in
    ``skipped`` with a reason; they never fail the whole request.
    """
    rule = to_rule(body.recurrence)
    validate(rule, body.start_time)
    court = await _get_bookable_court(body.court_id)

    template = BookingTemplate(
        court_id=court.id,
        club_id=court.club_id,
        user_id=current_user.id,
        duration_hours=body.duration_hours,
        purpose=body.purpose,
        match_type=body.match_type,
        participants=tuple(body.participants),
        guest_count=body.guest_count,
        special_requests=body.special_requests,
        equipment_needed=tuple(body.equipment_needed) if body.equipment_needed is not None else None,
    )
    result = await creator.create(template, rule, body.start_time)

    return RecurringReservationResponse(
        created_count=result.created_count,
        skipped_count=len(result.skipped),
        occurrence_count=result.occurrence_count,
        truncated=result.truncated,
        recurrence_group_id=result.recurrence_group_id,
        created=result.created,
        skipped=[
            SkippedOccurrence(
                date=s.date,
                time=result.window.label(),
                reason=s.reason,
                conflicting_reservation_ids=list(s.reservation_ids),
                detail=s.detail,
            )
            for s in result.skipped
        ],
    )


@router.get(
    "",
    response_model=CourtReservationListResponse,
    operation_id="listMyReservations",
    summary="List the authenticated user's court reservations",
)
async def list_reservations(
    current_user: CurrentUser,
    pagination: PaginationParams = Depends(PaginationParams),
    status: ReservationStatus | None = Query(None, description="Filter by status"),
    court_id: str | None = Query(None, description="Filter by court"),
    date_from: date | None = Query(None, description="Earliest reservation date (inclusive)"),
    date_to: date | None = Query(None, description="Latest reservation date (inclusive)"),
    recurrence_group_id: UUID | None = Query(None, description="Only one recurring series"),
) -> CourtReservationListResponse:
    items = await db.list_user_reservations(
        current_user.id,
        status=status.value if status else None,
        court_id=court_id,
        date_from=date_from,
        date_to=date_to,
        recurrence_group_id=recurrence_group_id,
    )
    return paginate(items, pagination, CourtReservationListResponse)


@router.get(
    "/{reservation_id}",
    response_model=CourtReservation,
    operation_id="getReservation",
    summary="Get one of the authenticated user's reservations",
)
async def get_reservation(
    reservation_id: UUID,
    current_user: CurrentUser,
) -> CourtReservation:
    reservation = await db.get_reservation(str(reservation_id))
    if reservation is None or reservation.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Reservation {reservation_id} not found",
        )
    return reservation
