from datetime import date

from fastapi import APIRouter, HTTPException, Query, status

from court_reservations import db
from court_reservations.models import AvailabilitySlot, Court, CourtAvailabilityResponse
from court_reservations.routers.reservations import checker

router = APIRouter(prefix="/api/courts", tags=["courts"])


async def _get_court_or_404(court_id: str) -> Court:
    court = await db.get_court(court_id)
    if court is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Court {court_id} not found",
        )
    return court


@router.get(
    "/{court_id}",
    response_model=Court,
    operation_id="getCourt",
    summary="Get details of a specific court",
)
async def get_court(court_id: str) -> Court:
    return await _get_court_or_404(court_id)


@router.get(
    "/{court_id}/availability",
    response_model=CourtAvailabilityResponse,
    operation_id="getCourtAvailability",
    summary="List free hourly slots for a court on one day",
)
async def get_court_availability(
    court_id: str,
    day: date = Query(..., alias="date", description="Day to inspect"),
    duration_hours: float = Query(1, gt=0, le=12, multiple_of=0.25),
) -> CourtAvailabilityResponse:
    await _get_court_or_404(court_id)
    slots = await checker.available_slots(court_id, day, duration_hours)
    return CourtAvailabilityResponse(
        court_id=court_id,
        date=day,
        duration_hours=duration_hours,
        slots=[AvailabilitySlot(start_time=s, end_time=e) for s, e in slots],
    )
