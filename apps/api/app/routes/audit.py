"""Audit log routes."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.domain.permissions import Permission
from app.routes.dependencies import get_audit_trail, require_permission
from app.schemas.audit import AuditAction, AuditPage, AuditQuery
from app.schemas.auth import Principal
from app.schemas.error import ForbiddenErrorResponse, UnauthorizedError
from app.services.audit import DEFAULT_QUERY_LIMIT, AuditTrail

router = APIRouter(tags=["Audit"])


@router.get(
    "/audit-log",
    response_model=AuditPage,
    responses={401: {"model": UnauthorizedError}, 403: {"model": ForbiddenErrorResponse}},
)
async def query_audit_log(
    _: Annotated[Principal, Depends(require_permission(Permission.READ_AUDIT))],
    audit: Annotated[AuditTrail, Depends(get_audit_trail)],
    actor_id: Annotated[str | None, Query(alias="actorId")] = None,
    action: AuditAction | None = None,
    resource_type: Annotated[str | None, Query(alias="resourceType")] = None,
    resource_id: Annotated[str | None, Query(alias="resourceId")] = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: Annotated[int, Query(ge=1, le=500)] = DEFAULT_QUERY_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> AuditPage:
    filters = AuditQuery(
        actor_id=actor_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        start=start,
        end=end,
    )
    return audit.query(filters, limit=limit, offset=offset)
