"""
Health check endpoint.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from court_reservations.models import HealthResponse

router = APIRouter(prefix="/api", tags=["health"])

VERSION = "0.1.0"


@router.get(
    "/health",
    response_model=HealthResponse,
    operation_id="getHealth",
    summary="Health check",
)
async def get_health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=VERSION,
        timestamp=datetime.now(timezone.utc),
    )
