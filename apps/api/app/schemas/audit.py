"""Audit trail schemas."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.time_utils import as_utc


class AuditAction(str, Enum):
    USER_ACTIVATE = "user.activate"
    USER_DEACTIVATE = "user.deactivate"
    USER_UPDATE = "user.update"

    SITE_CREATE = "site.create"
    SITE_UPDATE = "site.update"
    SITE_DELETE = "site.delete"

    ASSET_CREATE = "asset.create"
    ASSET_UPDATE = "asset.update"
    ASSET_DELETE = "asset.delete"

    SURVEY_CREATE = "survey.create"
    SURVEY_UPDATE = "survey.update"
    SURVEY_TRANSITION = "survey.transition"
    SURVEY_SUBMIT = "survey.submit"
    SURVEY_CLAIM = "survey.claim"
    SURVEY_DELETE = "survey.delete"
    SURVEY_TRANSITION_REJECTED = "survey.transition_rejected"

    INSPECTION_CREATE = "inspection.create"
    INSPECTION_UPDATE = "inspection.update"

    REPORT_EXPORT = "report.export"

    ACCESS_DENIED = "access.denied"


class AuditEntry(BaseModel):
    """Immutable audit record."""

    model_config = ConfigDict(frozen=True)

    id: str
    actor_id: str | None = None
    action: AuditAction
    resource_type: str | None = None
    resource_id: str | None = None
    details: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime


class AuditQuery(BaseModel):
    actor_id: str | None = None
    action: AuditAction | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    start: datetime | None = None
    end: datetime | None = None

    @field_validator("start", "end")
    @classmethod
    def _normalize_to_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class AuditPage(BaseModel):
    entries: list[AuditEntry]
    limit: int = Field(ge=1)
    offset: int = Field(ge=0)
