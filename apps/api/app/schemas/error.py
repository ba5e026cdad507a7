"""API error response schemas."""

from typing import Any
from typing import Literal

from pydantic import BaseModel

from app.schemas.survey import SurveyStatus


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class UnauthorizedError(BaseModel):
    code: Literal["UNAUTHORIZED"]
    message: str


class ForbiddenErrorDetails(BaseModel):
    permission: str


class ForbiddenErrorResponse(BaseModel):
    code: Literal["INSUFFICIENT_PERMISSION", "OWNERSHIP_VIOLATION"]
    message: str
    details: ForbiddenErrorDetails


class NoLeakNotFoundError(BaseModel):
    code: Literal["RESOURCE_NOT_FOUND"]
    message: str


class TransitionErrorDetails(BaseModel):
    current_status: SurveyStatus
    attempted_status: SurveyStatus
    allowed_next_statuses: list[SurveyStatus] | None = None


class FsmTransitionError(BaseModel):
    code: Literal["FSM_TRANSITION_INVALID", "FSM_TERMINAL_IMMUTABLE"]
    message: str
    details: TransitionErrorDetails


class VersionConflictErrorDetails(BaseModel):
    expected_version: int
    current_version: int


class VersionConflictError(BaseModel):
    code: Literal["VERSION_CONFLICT"]
    message: str
    details: VersionConflictErrorDetails


class ValidationErrorResponse(BaseModel):
    code: Literal["VALIDATION_ERROR"]
    message: str
    details: dict[str, Any] | None = None
