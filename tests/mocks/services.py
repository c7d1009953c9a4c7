"""
Stand-ins for the conflict checker used by booking tests.

The blind checker never reports a conflict, which lets tests drive a
booking straight into the storage constraint as if a concurrent request
had taken the slot after the advisory check.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from court_reservations.services.conflicts import Conflict, ConflictChecker, TimeWindow


class BlindConflictChecker(ConflictChecker):
    """ConflictChecker whose advisory check always comes back clean."""

    def __init__(self) -> None:
        self.checked: list[tuple[str, TimeWindow, list[date]]] = []

    async def check(
        self,
        court_id: str,
        window: TimeWindow,
        dates: Iterable[date],
    ) -> list[Conflict]:
        self.checked.append((court_id, window, list(dates)))
        return []
