"""Site and asset API schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class CreateSiteRequest(BaseModel):
    name: str = Field(min_length=1)
    location: str | None = None
    client: str | None = None


class UpdateSiteRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    location: str | None = None
    client: str | None = None


class Site(BaseModel):
    id: str
    name: str
    location: str | None = None
    client: str | None = None
    created_at: datetime
    updated_at: datetime


class CreateAssetRequest(BaseModel):
    name: str = Field(min_length=1)
    service_line: str | None = None
    building: str | None = None
    location: str | None = None
    ref_code: str | None = None


class UpdateAssetRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    service_line: str | None = None
    building: str | None = None
    location: str | None = None
    ref_code: str | None = None


class Asset(BaseModel):
    id: str
    site_id: str
    name: str
    service_line: str | None = None
    building: str | None = None
    location: str | None = None
    ref_code: str | None = None
    created_at: datetime
    updated_at: datetime
