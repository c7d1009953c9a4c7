"""
Recurrence rule expansion.

Turns a rule (pattern, interval, weekdays, termination) plus an anchor
datetime into the ordered list of calendar dates a recurring booking
lands on.  Pure computation, no I/O: the same function backs the client
preview endpoint and the actual booking call.

Usage::

    rule = RecurrenceRule(
        pattern=RecurrencePattern.WEEKLY,
        days_of_week=frozenset({Weekday.MONDAY, Weekday.WEDNESDAY}),
        termination=CountLimit(6),
    )
    expansion = expand(rule, datetime(2025, 3, 3, 18, 0))
    expansion.dates      # (2025-03-03, 2025-03-05, 2025-03-10, ...)
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from itertools import count, islice
from typing import Literal

from dateutil.relativedelta import relativedelta

from court_reservations.errors import RecurrenceValidationError

# Hard upper bound on generated occurrences, whatever the rule asks for.
SAFETY_CAP = 100

# Largest step accepted for any pattern (days, weeks or months).
MAX_INTERVAL = 366


class RecurrencePattern(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Weekday(str, Enum):
    """Weekday tags, declared in date.weekday() order (Monday = 0)."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def of(cls, day: date) -> Weekday:
        return _WEEKDAYS[day.weekday()]


_WEEKDAYS: tuple[Weekday, ...] = tuple(Weekday)


# ── Termination (tagged variant) ──────────────────────────────────────────


@dataclass(frozen=True)
class CountLimit:
    """Stop after a fixed number of occurrences."""

    max_occurrences: int
    kind: Literal["count"] = field(default="count", init=False)

    def __post_init__(self) -> None:
        if self.max_occurrences < 1:
            raise RecurrenceValidationError(
                "max_occurrences", "max_occurrences must be at least 1"
            )


@dataclass(frozen=True)
class DateLimit:
    """Stop after the last occurrence on or before end_date."""

    end_date: date
    kind: Literal["date"] = field(default="date", init=False)


Termination = CountLimit | DateLimit


# ── Rule ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RecurrenceRule:
    """
    How a single booking repeats.

    ``days_of_week`` is only meaningful for the weekly pattern and is
    required (non-empty) there.
    """

    pattern: RecurrencePattern
    termination: Termination
    interval: int = 1
    days_of_week: frozenset[Weekday] = frozenset()

    def __post_init__(self) -> None:
        if not isinstance(self.termination, (CountLimit, DateLimit)):
            raise RecurrenceValidationError(
                "termination", "termination must be a count or an end date"
            )
        if not 1 <= self.interval <= MAX_INTERVAL:
            raise RecurrenceValidationError(
                "interval", f"interval must be between 1 and {MAX_INTERVAL}"
            )
        if self.pattern is RecurrencePattern.WEEKLY and not self.days_of_week:
            raise RecurrenceValidationError(
                "days_of_week", "Select at least one day of the week for a weekly pattern"
            )


@dataclass(frozen=True)
class Expansion:
    """Result of expanding a rule: the dates plus whether the safety cap cut it short."""

    dates: tuple[date, ...]
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.dates)


# ── Generators ────────────────────────────────────────────────────────────
# Each yields a chronological stream that only ends at date.max;
# termination is applied by the caller.


def _daily(anchor: date, interval: int) -> Iterator[date]:
    for k in count():
        try:
            day = anchor + timedelta(days=k * interval)
        except OverflowError:
            return
        yield day


def _weekly(anchor: date, interval: int, days: frozenset[Weekday]) -> Iterator[date]:
    # Weeks are 7-day blocks starting on the anchor date; only every
    # `interval`-th block is eligible.
    for block in count(step=interval):
        for offset in range(7):
            try:
                day = anchor + timedelta(weeks=block, days=offset)
            except OverflowError:
                return
            if Weekday.of(day) in days:
                yield day


def _monthly(anchor: date, interval: int) -> Iterator[date]:
    # Always offset from the anchor so a clamped day (31 → 30) never drifts.
    for k in count():
        try:
            day = anchor + relativedelta(months=k * interval)
        except (OverflowError, ValueError):
            return
        yield day


def _occurrences(rule: RecurrenceRule, anchor: date) -> Iterator[date]:
    if rule.pattern is RecurrencePattern.DAILY:
        return _daily(anchor, rule.interval)
    if rule.pattern is RecurrencePattern.WEEKLY:
        return _weekly(anchor, rule.interval, rule.days_of_week)
    return _monthly(anchor, rule.interval)


def _bounded(stream: Iterator[date], termination: Termination) -> Iterator[date]:
    if isinstance(termination, CountLimit):
        yield from islice(stream, termination.max_occurrences)
        return
    for day in stream:
        if day > termination.end_date:
            return
        yield day


# ── Public API ────────────────────────────────────────────────────────────


def _anchor_date(anchor: datetime | date) -> date:
    return anchor.date() if isinstance(anchor, datetime) else anchor


def validate(rule: RecurrenceRule, anchor: datetime | date) -> None:
    """Checks that depend on the anchor (the rule validates itself on creation)."""
    start = _anchor_date(anchor)
    if isinstance(rule.termination, DateLimit) and rule.termination.end_date < start:
        raise RecurrenceValidationError(
            "end_date",
            f"end_date {rule.termination.end_date.isoformat()} is before the "
            f"start date {start.isoformat()}",
        )


def expand(rule: RecurrenceRule, anchor: datetime | date) -> Expansion:
    """
    Expand ``rule`` into concrete dates starting at ``anchor``.

    Never returns more than SAFETY_CAP dates; if the rule would produce
    more, the result is cut at the cap and flagged ``truncated``.
    """
    validate(rule, anchor)
    start = _anchor_date(anchor)

    stream = _bounded(_occurrences(rule, start), rule.termination)
    dates = tuple(islice(stream, SAFETY_CAP + 1))

    if len(dates) > SAFETY_CAP:
        return Expansion(dates=dates[:SAFETY_CAP], truncated=True)
    return Expansion(dates=dates)
