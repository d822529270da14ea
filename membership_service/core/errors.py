# membership_service/core/errors.py
"""
Domain errors for the membership engine.

Every error carries a stable machine-readable code, the HTTP status it maps
to, and whether the caller may safely retry the same request.
"""

import enum
from typing import Optional


class ErrorCode(str, enum.Enum):
    NO_SEATS_AVAILABLE = "NO_SEATS_AVAILABLE"
    INVALID_SCOPE = "INVALID_SCOPE"
    DESIGNATION_NOT_FOUND = "DESIGNATION_NOT_FOUND"
    DESIGNATION_CODE_TAKEN = "DESIGNATION_CODE_TAKEN"
    DESIGNATION_IN_USE = "DESIGNATION_IN_USE"
    CELL_NOT_FOUND = "CELL_NOT_FOUND"
    GEO_NOT_FOUND = "GEO_NOT_FOUND"
    MEMBERSHIP_NOT_FOUND = "MEMBERSHIP_NOT_FOUND"
    ID_CARD_NOT_FOUND = "ID_CARD_NOT_FOUND"
    CYCLE_DETECTED = "CYCLE_DETECTED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    PAYMENT_REF_MISMATCH = "PAYMENT_REF_MISMATCH"
    SEAT_ALREADY_HELD = "SEAT_ALREADY_HELD"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
    CARD_NUMBER_EXHAUSTED = "CARD_NUMBER_EXHAUSTED"
    DATABASE_UNAVAILABLE = "DATABASE_UNAVAILABLE"


class MembershipError(Exception):
    """Base error with structured information"""

    status_code = 400
    retryable = False

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[dict] = None,
        status_code: Optional[int] = None,
        retryable: Optional[bool] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        if retryable is not None:
            self.retryable = retryable
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
            **self.details,
        }


class CapacityError(MembershipError):
    """The bucket (or the level aggregate) has no free seat."""

    status_code = 409

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(ErrorCode.NO_SEATS_AVAILABLE, message, details)


class ScopeValidationError(MembershipError):
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(ErrorCode.INVALID_SCOPE, message, details)


class NotFoundError(MembershipError):
    status_code = 404


class ConflictError(MembershipError):
    status_code = 409


class InvalidTransitionError(ConflictError):
    def __init__(self, membership_id: str, current: str, action: str):
        super().__init__(
            ErrorCode.INVALID_TRANSITION,
            f"Cannot {action} membership {membership_id} in status {current}",
            {"membership_id": membership_id, "status": current, "action": action},
        )


class ConcurrentModificationError(MembershipError):
    status_code = 409
    retryable = True

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(ErrorCode.CONCURRENT_MODIFICATION, message, details)


class NumberingExhaustedError(MembershipError):
    status_code = 503

    def __init__(self, epoch: int):
        super().__init__(
            ErrorCode.CARD_NUMBER_EXHAUSTED,
            f"Card number space for epoch {epoch} is exhausted",
            {"epoch": epoch},
        )


class DatabaseUnavailableError(MembershipError):
    status_code = 503
    retryable = True

    def __init__(self, message: str = "Database temporarily unavailable"):
        super().__init__(ErrorCode.DATABASE_UNAVAILABLE, message)
