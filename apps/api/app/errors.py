"""Application exception types."""

from enum import Enum
from typing import Any

from app.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(self, status_code: int, code: str, message: str, details: dict | None = None) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(code=code, message=message, details=details)
        super().__init__(message)


class AuthFailureReason(str, Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    EXPIRED = "expired"
    UNKNOWN_USER = "unknown_user"
    DEACTIVATED = "deactivated"


class ForbiddenReason(str, Enum):
    INSUFFICIENT_PERMISSION = "insufficient_permission"
    OWNERSHIP_VIOLATION = "ownership_violation"


class UnauthenticatedError(ApiError):
    """No usable identity. Every reason renders the same 401 payload."""

    def __init__(self, reason: AuthFailureReason, message: str = "Invalid or missing bearer token") -> None:
        self.reason = reason
        super().__init__(status_code=401, code="UNAUTHORIZED", message=message)


class ForbiddenError(ApiError):
    def __init__(self, reason: ForbiddenReason, permission: str) -> None:
        self.reason = reason
        if reason is ForbiddenReason.OWNERSHIP_VIOLATION:
            code = "OWNERSHIP_VIOLATION"
            message = "Access denied. You can only access your own resources."
        else:
            code = "INSUFFICIENT_PERMISSION"
            message = "Insufficient permissions"
        super().__init__(status_code=403, code=code, message=message, details={"permission": permission})


class NotFoundError(ApiError):
    def __init__(self) -> None:
        super().__init__(status_code=404, code="RESOURCE_NOT_FOUND", message="Resource not found")


class InvalidStateTransitionError(ApiError):
    def __init__(
        self,
        *,
        current_status: Any,
        attempted_status: Any,
        allowed_next_statuses: list[Any],
        terminal: bool = False,
    ) -> None:
        self.current_status = current_status
        self.attempted_status = attempted_status
        super().__init__(
            status_code=409,
            code="FSM_TERMINAL_IMMUTABLE" if terminal else "FSM_TRANSITION_INVALID",
            message="Terminal state cannot be mutated" if terminal else "Invalid status transition",
            details={
                "current_status": current_status,
                "attempted_status": attempted_status,
                "allowed_next_statuses": allowed_next_statuses,
            },
        )


class StaleVersionError(ApiError):
    def __init__(self, *, expected_version: int, current_version: int) -> None:
        super().__init__(
            status_code=409,
            code="VERSION_CONFLICT",
            message="Survey version does not match current version.",
            details={
                "expected_version": expected_version,
                "current_version": current_version,
            },
        )


class ValidationError(ApiError):
    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(status_code=400, code="VALIDATION_ERROR", message=message, details=details)


__all__ = [
    "ApiError",
    "AuthFailureReason",
    "ForbiddenError",
    "ForbiddenReason",
    "InvalidStateTransitionError",
    "NotFoundError",
    "StaleVersionError",
    "UnauthenticatedError",
    "ValidationError",
]
