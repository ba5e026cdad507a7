"""Dependency wiring for routes."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import logging
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.adapters.auth import JwtTokenVerifier, MockTokenVerifier, TokenVerifier
from app.core.config import Settings, get_settings
from app.core.logging_safety import safe_log_identifier
from app.core.request_context import RequestContext
from app.domain.permissions import Permission, PermissionMatrix
from app.errors import AuthFailureReason, UnauthenticatedError
from app.repositories.memory import InMemoryStore
from app.schemas.auth import Principal
from app.services.audit import AuditTrail
from app.services.authentication import AuthenticationVerifier
from app.services.authorization import AuthorizationGuard
from app.services.dashboard import DashboardService
from app.services.sites import SiteService
from app.services.surveys import SurveyService
from app.services.users import UserService

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
logger = logging.getLogger(__name__)


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client is not None:
        return request.client.host
    return None


def get_request_context(request: Request) -> RequestContext:
    return RequestContext(
        correlation_id=_request_correlation_id(request),
        ip_address=_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )


def get_token_verifier(settings: Annotated[Settings, Depends(get_settings)]) -> TokenVerifier:
    """Resolve provider adapter from configuration."""
    if settings.auth_provider == "jwt":
        return JwtTokenVerifier(
            secret=settings.jwt_secret or "",
            algorithm=settings.jwt_algorithm,
            leeway_seconds=settings.jwt_leeway_seconds,
        )
    return MockTokenVerifier()


def get_store(request: Request) -> InMemoryStore:
    return request.app.state.store


def get_permission_matrix(request: Request) -> PermissionMatrix:
    return request.app.state.permission_matrix


def get_audit_trail(
    store: Annotated[InMemoryStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuditTrail:
    return AuditTrail(store.audit, max_query_limit=settings.audit_query_max_limit)


def get_authorization_guard(
    matrix: Annotated[PermissionMatrix, Depends(get_permission_matrix)],
    audit: Annotated[AuditTrail, Depends(get_audit_trail)],
) -> AuthorizationGuard:
    return AuthorizationGuard(matrix, audit)


def get_authentication_verifier(
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
    store: Annotated[InMemoryStore, Depends(get_store)],
) -> AuthenticationVerifier:
    return AuthenticationVerifier(verifier, store)


def _bearer_credential(credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials


def _log_rejection(request: Request, context: RequestContext, exc: UnauthenticatedError) -> None:
    logger.warning(
        "auth.rejected correlation_id=%s method=%s path=%s reason=%s",
        safe_log_identifier(context.correlation_id, prefix="cid"),
        request.method,
        request.url.path,
        exc.reason.value,
    )


def _log_acceptance(request: Request, context: RequestContext, principal: Principal) -> None:
    logger.info(
        "auth.accepted correlation_id=%s method=%s path=%s principal_id=%s role=%s",
        safe_log_identifier(context.correlation_id, prefix="cid"),
        request.method,
        request.url.path,
        safe_log_identifier(principal.user_id, prefix="pid"),
        principal.role.value,
    )


async def get_authenticated_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    authenticator: Annotated[AuthenticationVerifier, Depends(get_authentication_verifier)],
    context: Annotated[RequestContext, Depends(get_request_context)],
) -> Principal:
    """Validate bearer token and attach normalized principal to request context."""
    try:
        principal = authenticator.verify(_bearer_credential(credentials))
    except UnauthenticatedError as exc:
        _log_rejection(request, context, exc)
        raise

    _log_acceptance(request, context, principal)
    request.state.auth_principal = principal
    return principal


async def get_optional_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    authenticator: Annotated[AuthenticationVerifier, Depends(get_authentication_verifier)],
) -> Principal | None:
    """Personalize when a valid credential is present; never reject the request."""
    principal = authenticator.verify_optional(_bearer_credential(credentials))
    request.state.auth_principal = principal
    return principal


def require_permission(permission: Permission) -> Callable[..., Awaitable[Principal]]:
    """Authenticate and check the permission axis; denials (anonymous included) are audited."""

    async def dependency(
        request: Request,
        credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
        authenticator: Annotated[AuthenticationVerifier, Depends(get_authentication_verifier)],
        guard: Annotated[AuthorizationGuard, Depends(get_authorization_guard)],
        context: Annotated[RequestContext, Depends(get_request_context)],
    ) -> Principal:
        principal: Principal | None = None
        failure: UnauthenticatedError | None = None
        try:
            principal = authenticator.verify(_bearer_credential(credentials))
        except UnauthenticatedError as exc:
            _log_rejection(request, context, exc)
            failure = exc

        guard.authorize(principal, permission, context=context, auth_failure=failure)
        if principal is None:
            raise failure or UnauthenticatedError(AuthFailureReason.MISSING)
        _log_acceptance(request, context, principal)
        request.state.auth_principal = principal
        return principal

    dependency.__name__ = f"require_{permission.name.lower()}"
    return dependency


def get_survey_service(
    store: Annotated[InMemoryStore, Depends(get_store)],
    guard: Annotated[AuthorizationGuard, Depends(get_authorization_guard)],
    audit: Annotated[AuditTrail, Depends(get_audit_trail)],
) -> SurveyService:
    return SurveyService(store, guard, audit)


def get_site_service(
    store: Annotated[InMemoryStore, Depends(get_store)],
    audit: Annotated[AuditTrail, Depends(get_audit_trail)],
) -> SiteService:
    return SiteService(store, audit)


def get_user_service(
    store: Annotated[InMemoryStore, Depends(get_store)],
    audit: Annotated[AuditTrail, Depends(get_audit_trail)],
) -> UserService:
    return UserService(store, audit)


def get_dashboard_service(store: Annotated[InMemoryStore, Depends(get_store)]) -> DashboardService:
    return DashboardService(store)
