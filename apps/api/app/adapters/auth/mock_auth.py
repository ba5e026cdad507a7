"""Mock auth verifier for local development and tests."""

from app.adapters.auth.base import AuthVerificationError, TokenVerifier
from app.schemas.auth import TokenClaims


class MockTokenVerifier(TokenVerifier):
    """Accepts deterministic test tokens only.

    Expected token format:
    - ``test:<user_id>``
    - ``test:<user_id>:<role>``

    The role segment is carried as an informational claim; the live user record decides.
    """

    def verify_token(self, token: str) -> TokenClaims:
        parts = token.split(":")
        if len(parts) not in (2, 3) or parts[0] != "test":
            raise AuthVerificationError("Invalid bearer token")

        user_id = parts[1].strip()
        role = parts[2].strip() if len(parts) == 3 else None

        if not user_id:
            raise AuthVerificationError("Bearer token missing user identity")
        if len(parts) == 3 and not role:
            raise AuthVerificationError("Bearer token missing role")

        return TokenClaims(user_id=user_id, role=role)


__all__ = ["MockTokenVerifier"]
