"""Dashboard and survey report schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.auth import Role
from app.schemas.inspection import Inspection
from app.schemas.survey import Survey


class DashboardStats(BaseModel):
    total_surveys: int
    pending_reviews: int
    active_surveyors: int
    completed_today: int


class DashboardSurvey(Survey):
    surveyor_name: str | None = None
    site_name: str | None = None


class UserActivity(BaseModel):
    id: str
    email: str
    full_name: str | None = None
    role: Role
    active: bool
    survey_count: int


class SurveyReport(BaseModel):
    survey: Survey
    site_name: str
    inspection_count: int
    assets_on_site: int
    assets_inspected: int
    quantity_installed: int
    quantity_working: int
    conditions: dict[str, int] = Field(default_factory=dict)
    inspections: list[Inspection] = Field(default_factory=list)
    generated_at: datetime
