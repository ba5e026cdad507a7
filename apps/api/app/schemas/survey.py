"""Survey API schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class SurveyStatus(str, Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    COMPLETED = "completed"


class Survey(BaseModel):
    id: str
    site_id: str
    surveyor_id: str | None = None
    trade: str | None = None
    location: str | None = None
    status: SurveyStatus
    version: int
    created_at: datetime
    updated_at: datetime
    submitted_at: datetime | None = None


class CreateSurveyRequest(BaseModel):
    # Optional at the schema level so a missing site reference surfaces as a domain ValidationError.
    site_id: str | None = None
    trade: str | None = None
    location: str | None = None
    surveyor_id: str | None = None


class UpdateSurveyRequest(BaseModel):
    trade: str | None = None
    location: str | None = None
    status: SurveyStatus | None = None
    expected_version: int | None = Field(default=None, ge=1)


class TransitionSurveyRequest(BaseModel):
    status: SurveyStatus
    expected_version: int | None = Field(default=None, ge=1)


class SubmitSurveyRequest(BaseModel):
    expected_version: int | None = Field(default=None, ge=1)


class ClaimSurveyRequest(BaseModel):
    surveyor_id: str | None = None
