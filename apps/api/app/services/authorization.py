"""Authorization guard combining the permission matrix with ownership rules."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging

from app.core.logging_safety import safe_actor_identifier, safe_log_identifier
from app.core.request_context import RequestContext
from app.domain.permissions import Permission, PermissionMatrix
from app.errors import (
    ApiError,
    AuthFailureReason,
    ForbiddenError,
    ForbiddenReason,
    UnauthenticatedError,
)
from app.schemas.audit import AuditAction
from app.schemas.auth import Principal, Role
from app.services.audit import AuditTrail

logger = logging.getLogger(__name__)

OwnershipCheck = Callable[[Principal], bool]


def owned_by(owner_id: str | None) -> OwnershipCheck:
    """Principal owns the resource. Unassigned resources are owned by nobody."""
    return lambda principal: owner_id is not None and owner_id == principal.user_id


def owned_or_unassigned(owner_id: str | None) -> OwnershipCheck:
    """Claim policy: the resource is unassigned or already belongs to the principal."""
    return lambda principal: owner_id is None or owner_id == principal.user_id


@dataclass(frozen=True, slots=True)
class AuthorizationDecision:
    allowed: bool
    auth_failure: AuthFailureReason | None = None
    forbidden: ForbiddenReason | None = None

    @property
    def reason(self) -> str | None:
        if self.auth_failure is not None:
            return "unauthenticated"
        if self.forbidden is not None:
            return self.forbidden.value
        return None


_ALLOW = AuthorizationDecision(allowed=True)


class AuthorizationGuard:
    """Single place where permission, ownership and the admin bypass are decided."""

    def __init__(self, matrix: PermissionMatrix, audit: AuditTrail) -> None:
        self._matrix = matrix
        self._audit = audit

    def evaluate(
        self,
        principal: Principal | None,
        permission: Permission,
        *,
        ownership_check: OwnershipCheck | None = None,
        auth_failure: AuthFailureReason | None = None,
    ) -> AuthorizationDecision:
        if principal is None:
            return AuthorizationDecision(allowed=False, auth_failure=auth_failure or AuthFailureReason.MISSING)
        if not principal.active:
            return AuthorizationDecision(allowed=False, auth_failure=AuthFailureReason.DEACTIVATED)
        if not self._matrix.has_permission(principal.role, permission):
            return AuthorizationDecision(allowed=False, forbidden=ForbiddenReason.INSUFFICIENT_PERMISSION)
        # Admins are never subject to ownership; the predicate is not even evaluated.
        if ownership_check is not None and principal.role is not Role.ADMIN:
            if not ownership_check(principal):
                return AuthorizationDecision(allowed=False, forbidden=ForbiddenReason.OWNERSHIP_VIOLATION)
        return _ALLOW

    def authorize(
        self,
        principal: Principal | None,
        permission: Permission,
        *,
        context: RequestContext,
        ownership_check: OwnershipCheck | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        auth_failure: UnauthenticatedError | None = None,
    ) -> None:
        """Admit the action or record an access-denied entry and raise."""
        decision = self.evaluate(
            principal,
            permission,
            ownership_check=ownership_check,
            auth_failure=auth_failure.reason if auth_failure is not None else None,
        )
        if decision.allowed:
            return

        actor_id = principal.user_id if principal is not None else None
        details: dict[str, str] = {"attempted_action": permission.value, "reason": decision.reason or "denied"}
        if decision.auth_failure is not None:
            details["auth_failure"] = decision.auth_failure.value

        logger.warning(
            "authz.denied correlation_id=%s principal_id=%s permission=%s resource_type=%s reason=%s",
            safe_log_identifier(context.correlation_id, prefix="cid"),
            safe_actor_identifier(actor_id),
            permission.value,
            resource_type or "-",
            details.get("auth_failure", details["reason"]),
        )
        self._audit.record(
            action=AuditAction.ACCESS_DENIED,
            context=context,
            actor_id=actor_id,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
        )
        raise self._denial_error(decision, permission, auth_failure)

    @staticmethod
    def _denial_error(
        decision: AuthorizationDecision,
        permission: Permission,
        auth_failure: UnauthenticatedError | None,
    ) -> ApiError:
        if decision.auth_failure is not None:
            if auth_failure is not None:
                return auth_failure
            return UnauthenticatedError(decision.auth_failure)
        return ForbiddenError(decision.forbidden or ForbiddenReason.INSUFFICIENT_PERMISSION, permission.value)
