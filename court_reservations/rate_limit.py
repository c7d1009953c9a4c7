"""
Rate limiting configuration using slowapi.

Two tiers:
  • booking – BOOKING_RATE_LIMIT (recurring bookings, up to 100 writes each)
  • default – 60/min (everything else)

The limiter keys on client IP by default.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from court_reservations.config import BOOKING_RATE_LIMIT

limiter = Limiter(key_func=get_remote_address, default_limits=["60/minute"])

# Named rate strings for use in @limiter.limit() decorators
BOOKING = BOOKING_RATE_LIMIT
DEFAULT = "60/minute"
