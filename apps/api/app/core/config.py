"""Application configuration."""

from functools import lru_cache
import re
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_MIN_JWT_SECRET_LENGTH = 32
_WEAK_JWT_SECRETS = ("secret", "password", "development", "1234567890", "facility_survey_secret")
# Secrets made only of repeated weak values count as weak too.
_WEAK_JWT_SECRET_PATTERN = re.compile("(?:" + "|".join(re.escape(word) for word in _WEAK_JWT_SECRETS) + ")+")


def _is_weak_secret(secret: str) -> bool:
    lowered = secret.lower()
    return len(set(lowered)) == 1 or _WEAK_JWT_SECRET_PATTERN.fullmatch(lowered) is not None


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    auth_provider: Literal["mock", "jwt"] = "jwt"
    jwt_secret: str | None = None
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    jwt_leeway_seconds: int = 0
    audit_query_max_limit: int = 500

    model_config = SettingsConfigDict(env_prefix="FSURVEY_", extra="ignore")

    @model_validator(mode="after")
    def _check_jwt_secret_strength(self) -> "Settings":
        if self.auth_provider != "jwt":
            return self
        secret = self.jwt_secret
        if not secret:
            raise ValueError("FSURVEY_JWT_SECRET is required when auth_provider is 'jwt'")
        if len(secret) < _MIN_JWT_SECRET_LENGTH:
            raise ValueError(f"FSURVEY_JWT_SECRET must be at least {_MIN_JWT_SECRET_LENGTH} characters long")
        if _is_weak_secret(secret):
            raise ValueError("FSURVEY_JWT_SECRET is a well-known weak value")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
