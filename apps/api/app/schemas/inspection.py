"""Asset inspection schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class Inspection(BaseModel):
    id: str
    survey_id: str
    asset_id: str
    condition_rating: str | None = None
    overall_condition: str | None = None
    quantity_installed: int | None = None
    quantity_working: int | None = None
    remarks: str | None = None
    gps_lat: float | None = None
    gps_lng: float | None = None
    created_at: datetime
    updated_at: datetime


class CreateInspectionRequest(BaseModel):
    asset_id: str = Field(min_length=1)
    condition_rating: str | None = None
    overall_condition: str | None = None
    quantity_installed: int | None = Field(default=None, ge=0)
    quantity_working: int | None = Field(default=None, ge=0)
    remarks: str | None = None
    gps_lat: float | None = Field(default=None, ge=-90, le=90)
    gps_lng: float | None = Field(default=None, ge=-180, le=180)


class UpdateInspectionRequest(BaseModel):
    condition_rating: str | None = None
    overall_condition: str | None = None
    quantity_installed: int | None = Field(default=None, ge=0)
    quantity_working: int | None = Field(default=None, ge=0)
    remarks: str | None = None
    gps_lat: float | None = Field(default=None, ge=-90, le=90)
    gps_lng: float | None = Field(default=None, ge=-180, le=180)
