"""Auth verifier adapters."""

from .base import AuthVerificationError, TokenVerifier, UserStatusLookup
from .jwt_auth import JwtTokenVerifier
from .mock_auth import MockTokenVerifier

__all__ = [
    "AuthVerificationError",
    "TokenVerifier",
    "UserStatusLookup",
    "JwtTokenVerifier",
    "MockTokenVerifier",
]
