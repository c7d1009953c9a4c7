"""Domain error codes for court reservations."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_RECURRENCE = "INVALID_RECURRENCE"
    INVALID_BOOKING = "INVALID_BOOKING"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class RecurrenceValidationError(DomainError):
    """Raised when a recurrence rule is malformed."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_RECURRENCE, message=message)
        self.field = field


class BookingValidationError(DomainError):
    """Raised when the per-occurrence booking content is invalid."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_BOOKING, message=message)
        self.field = field
