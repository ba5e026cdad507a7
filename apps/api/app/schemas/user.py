"""User administration schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.auth import Role


class User(BaseModel):
    id: str
    email: str
    full_name: str | None = None
    role: Role
    active: bool
    created_at: datetime


class UpdateUserStatusRequest(BaseModel):
    active: bool


class UpdateUserRequest(BaseModel):
    full_name: str | None = None
    email: str | None = Field(default=None, min_length=3)
    role: Role | None = None
