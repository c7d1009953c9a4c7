"""Pydantic models for the Court Reservation API."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from court_reservations.services.recurrence import (
    MAX_INTERVAL,
    SAFETY_CAP,
    RecurrencePattern,
    Weekday,
)

_HHMM = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


class MatchType(str, Enum):
    SINGLES = "singles"
    DOUBLES = "doubles"
    MIXED_DOUBLES = "mixed_doubles"
    PRACTICE = "practice"
    LESSON = "lesson"
    OTHER = "other"


class ReservationStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class SkipReason(str, Enum):
    CONFLICT = "conflict"
    STORAGE_ERROR = "storage_error"


# ── Shared ────────────────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime


class PaginationMeta(BaseModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int


class UserInfo(BaseModel):
    """The requester, as identified by the platform's session token."""
    id: str = Field(..., description="Platform user id (JWT subject)")


# ── Courts ────────────────────────────────────────────────────────────────


class Court(BaseModel):
    id: str = Field(..., description="Court identifier")
    club_id: str = Field(..., description="Owning club identifier")
    name: str = Field(..., description="Court name")
    active: bool = Field(default=True, description="Whether the court accepts bookings")


class AvailabilitySlot(BaseModel):
    start_time: datetime
    end_time: datetime


class CourtAvailabilityResponse(BaseModel):
    court_id: str
    date: date
    duration_hours: float
    slots: list[AvailabilitySlot]


# ── Reservations ──────────────────────────────────────────────────────────


class CourtReservation(BaseModel):
    """A persisted court reservation."""
    id: UUID
    court_id: str
    club_id: str
    user_id: str
    start_time: datetime
    end_time: datetime
    reservation_date: date
    duration_hours: float
    purpose: str | None = None
    match_type: MatchType | None = None
    participants: list[str] = Field(default_factory=list)
    guest_count: int = 0
    special_requests: str | None = None
    equipment_needed: list[str] | None = None
    status: ReservationStatus
    booking_source: str = "web"
    recurrence_group_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


class CourtReservationListResponse(BaseModel):
    items: list[CourtReservation]
    meta: PaginationMeta


# ── Conflict check ────────────────────────────────────────────────────────


class ConflictCheckRequest(BaseModel):
    court_id: str = Field(..., description="Court to check")
    dates: list[date] = Field(..., min_length=1, max_length=SAFETY_CAP)
    start_time: str = Field(..., pattern=_HHMM, description="Start time (HH:MM)")
    duration_hours: float = Field(..., gt=0, le=12, multiple_of=0.25)


class ConflictEntry(BaseModel):
    date: date
    time: str = Field(..., description="Start time (HH:MM)")
    conflicting_reservation_id: UUID


class ConflictCheckResponse(BaseModel):
    conflicts: list[ConflictEntry]


# ── Recurring bookings ────────────────────────────────────────────────────


class RecurrenceRequest(BaseModel):
    """Wire form of a recurrence rule."""
    pattern: RecurrencePattern
    interval: int = Field(
        default=1, ge=1, le=MAX_INTERVAL, description="Every N days/weeks/months"
    )
    days_of_week: list[Weekday] | None = Field(None, description="Required for weekly")
    end_date: date | None = Field(None, description="Last possible occurrence date")
    max_occurrences: int | None = Field(None, ge=1, description="Number of occurrences")


class RecurringReservationRequest(BaseModel):
    court_id: str
    start_time: datetime = Field(..., description="First occurrence (court-local time)")
    duration_hours: float = Field(default=1, gt=0, le=12, multiple_of=0.25)
    purpose: str | None = Field(None, max_length=200)
    match_type: MatchType = MatchType.PRACTICE
    participants: list[str] = Field(default_factory=list)
    guest_count: int = Field(default=0, ge=0)
    special_requests: str | None = None
    equipment_needed: list[str] | None = None
    recurrence: RecurrenceRequest


class SkippedOccurrence(BaseModel):
    date: date
    time: str = Field(..., description="Start time (HH:MM)")
    reason: SkipReason
    conflicting_reservation_ids: list[UUID] = Field(default_factory=list)
    detail: str | None = None


class RecurringReservationResponse(BaseModel):
    created_count: int
    skipped_count: int
    occurrence_count: int = Field(..., description="Dates produced by the recurrence rule")
    truncated: bool = Field(..., description="True if the safety cap shortened the series")
    recurrence_group_id: UUID
    created: list[CourtReservation]
    skipped: list[SkippedOccurrence]


class RecurrencePreviewRequest(BaseModel):
    start_time: datetime
    recurrence: RecurrenceRequest


class RecurrencePreviewResponse(BaseModel):
    dates: list[date]
    truncated: bool
