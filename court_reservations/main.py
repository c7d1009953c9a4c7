"""Main FastAPI application for the Court Reservation service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from court_reservations import db
from court_reservations.errors import DomainError
from court_reservations.rate_limit import limiter
from court_reservations.routers import courts, health, reservations

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await db.init_db()
    try:
        yield
    finally:
        await db.close_db()


app = FastAPI(
    title="Court Reservation API",
    description="Recurring court bookings with conflict detection",
    version=health.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": exc.message,
            "code": exc.code.value,
            "field": getattr(exc, "field", None),
        },
    )


app.include_router(health.router)
app.include_router(courts.router)
app.include_router(reservations.router)
