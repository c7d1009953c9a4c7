"""
Application configuration from environment variables.

All settings have sensible defaults for local development.
A .env file in the project root is loaded automatically (if present).
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file before reading any env vars
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# ── Environment ───────────────────────────────────────────────────────────

ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

# ── Paths ─────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"

# SQLite database file (shared with the federation platform's court tables)
DB_PATH: str = os.getenv("DB_PATH", str(DATA_DIR / "court_reservations.db"))

# ── JWT ───────────────────────────────────────────────────────────────────
# Tokens are issued by the platform's auth service; we only verify them.

JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-secret-change-me-in-production")
JWT_ALGORITHM: str = "HS256"

# ── Recurring bookings ────────────────────────────────────────────────────

# Occurrence count used when a request names neither end_date nor max_occurrences.
DEFAULT_MAX_OCCURRENCES: int = int(os.getenv("DEFAULT_MAX_OCCURRENCES", "10"))

# Upper bound on reservation inserts in flight for a single batch.
BOOKING_WRITE_CONCURRENCY: int = int(os.getenv("BOOKING_WRITE_CONCURRENCY", "8"))

# Rate limit applied to the recurring-booking endpoint.
BOOKING_RATE_LIMIT: str = os.getenv("BOOKING_RATE_LIMIT", "20/minute")

# ── Court opening hours (availability lookups) ────────────────────────────

COURT_OPEN_HOUR: int = int(os.getenv("COURT_OPEN_HOUR", "6"))
COURT_CLOSE_HOUR: int = int(os.getenv("COURT_CLOSE_HOUR", "22"))
