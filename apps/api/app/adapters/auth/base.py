"""Authentication provider interfaces."""

from abc import ABC, abstractmethod

from app.errors import AuthFailureReason
from app.schemas.auth import TokenClaims, UserStatus


class AuthVerificationError(Exception):
    """Raised when a token cannot be verified or normalized."""

    def __init__(self, message: str, reason: AuthFailureReason = AuthFailureReason.MALFORMED) -> None:
        self.reason = reason
        super().__init__(message)


class TokenVerifier(ABC):
    """Provider-neutral token verification interface."""

    @abstractmethod
    def verify_token(self, token: str) -> TokenClaims:
        """Verify token signature and lifetime and return its claims."""


class UserStatusLookup(ABC):
    """Live source of truth for account role and activation state."""

    @abstractmethod
    def get_user_status(self, user_id: str) -> UserStatus | None:
        """Return the current status of a user, or None when the user does not exist."""


__all__ = ["AuthVerificationError", "TokenVerifier", "UserStatusLookup"]
