"""Signed JWT verifier adapter."""

from __future__ import annotations

from datetime import UTC, datetime

import jwt

from app.adapters.auth.base import AuthVerificationError, TokenVerifier
from app.errors import AuthFailureReason
from app.schemas.auth import TokenClaims


class JwtTokenVerifier(TokenVerifier):
    """Verifies HMAC-signed JWTs carrying ``userId``, ``email``, ``role``, ``iat`` and ``exp``."""

    def __init__(self, secret: str, algorithm: str = "HS256", leeway_seconds: int = 0) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._leeway = leeway_seconds

    def verify_token(self, token: str) -> TokenClaims:
        try:
            decoded = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                leeway=self._leeway,
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthVerificationError("Token expired", reason=AuthFailureReason.EXPIRED) from exc
        except jwt.InvalidTokenError as exc:
            raise AuthVerificationError("Invalid bearer token") from exc

        user_id = str(decoded.get("userId") or decoded.get("sub") or "").strip()
        if not user_id:
            raise AuthVerificationError("Bearer token missing user identity")

        return TokenClaims(
            user_id=user_id,
            email=decoded.get("email"),
            role=decoded.get("role"),
            issued_at=_timestamp(decoded.get("iat")),
            expires_at=_timestamp(decoded.get("exp")),
        )


def _timestamp(value: object) -> datetime | None:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=UTC)
    return None


__all__ = ["JwtTokenVerifier"]
