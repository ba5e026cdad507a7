"""User administration routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from app.core.request_context import RequestContext
from app.domain.permissions import Permission
from app.routes.dependencies import get_request_context, get_user_service, require_permission
from app.schemas.auth import Principal
from app.schemas.error import ForbiddenErrorResponse, NoLeakNotFoundError, UnauthorizedError, ValidationErrorResponse
from app.schemas.user import UpdateUserRequest, UpdateUserStatusRequest, User
from app.services.users import UserService

router = APIRouter(prefix="/users", tags=["Users"])

_DENIALS = {401: {"model": UnauthorizedError}, 403: {"model": ForbiddenErrorResponse}}


@router.get("", response_model=list[User], responses=_DENIALS)
async def list_users(
    _: Annotated[Principal, Depends(require_permission(Permission.READ_USER))],
    service: Annotated[UserService, Depends(get_user_service)],
) -> list[User]:
    return service.list_users()


@router.patch("/{userId}/status", response_model=User, responses={**_DENIALS, 404: {"model": NoLeakNotFoundError}})
async def update_user_status(
    user_id: Annotated[str, Path(alias="userId")],
    payload: UpdateUserStatusRequest,
    principal: Annotated[Principal, Depends(require_permission(Permission.UPDATE_USER))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[UserService, Depends(get_user_service)],
) -> User:
    return service.set_user_active(principal=principal, user_id=user_id, active=payload.active, context=context)


@router.put(
    "/{userId}",
    response_model=User,
    responses={**_DENIALS, 400: {"model": ValidationErrorResponse}, 404: {"model": NoLeakNotFoundError}},
)
async def update_user(
    user_id: Annotated[str, Path(alias="userId")],
    payload: UpdateUserRequest,
    principal: Annotated[Principal, Depends(require_permission(Permission.UPDATE_USER))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[UserService, Depends(get_user_service)],
) -> User:
    return service.update_user(principal=principal, user_id=user_id, payload=payload, context=context)
