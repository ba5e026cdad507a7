"""Credential to principal resolution."""

import logging

from app.adapters.auth.base import AuthVerificationError, TokenVerifier, UserStatusLookup
from app.core.logging_safety import safe_log_identifier
from app.errors import AuthFailureReason, UnauthenticatedError
from app.schemas.auth import Principal

logger = logging.getLogger(__name__)


class AuthenticationVerifier:
    """Turns a bearer credential into a Principal using the live user record.

    The token is only trusted for identity. Role and activation state come from the
    user-status lookup on every call, so role changes and deactivation apply to
    tokens that are still within their lifetime.
    """

    def __init__(self, token_verifier: TokenVerifier, users: UserStatusLookup) -> None:
        self._token_verifier = token_verifier
        self._users = users

    def verify(self, credential: str | None) -> Principal:
        if credential is None or not credential.strip():
            raise UnauthenticatedError(AuthFailureReason.MISSING)

        try:
            claims = self._token_verifier.verify_token(credential.strip())
        except AuthVerificationError as exc:
            raise UnauthenticatedError(exc.reason, message=str(exc) or "Invalid bearer token") from exc

        status = self._users.get_user_status(claims.user_id)
        if status is None:
            raise UnauthenticatedError(AuthFailureReason.UNKNOWN_USER, message="User not found")
        if not status.active:
            raise UnauthenticatedError(
                AuthFailureReason.DEACTIVATED,
                message="Account is deactivated. Please contact administrator.",
            )

        if claims.role is not None and claims.role != status.role.value:
            logger.info(
                "auth.role_claim_stale principal_id=%s token_role=%s live_role=%s",
                safe_log_identifier(status.id, prefix="pid"),
                claims.role,
                status.role.value,
            )

        return Principal(user_id=status.id, email=status.email, role=status.role, active=status.active)

    def verify_optional(self, credential: str | None) -> Principal | None:
        try:
            return self.verify(credential)
        except UnauthenticatedError:
            return None
