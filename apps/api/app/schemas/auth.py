"""Authentication schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    ADMIN = "admin"
    SURVEYOR = "surveyor"


class Principal(BaseModel):
    """Authenticated actor for the duration of one request."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1)
    email: str
    role: Role
    active: bool = True


class TokenClaims(BaseModel):
    """Decoded credential payload. The role claim is informational only."""

    user_id: str = Field(min_length=1)
    email: str | None = None
    role: str | None = None
    issued_at: datetime | None = None
    expires_at: datetime | None = None


class UserStatus(BaseModel):
    id: str
    email: str
    role: Role
    active: bool


class SessionResponse(BaseModel):
    authenticated: bool
    principal: Principal | None = None
