"""Session introspection route."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.routes.dependencies import get_optional_principal
from app.schemas.auth import Principal, SessionResponse

router = APIRouter(tags=["Session"])


@router.get("/session", response_model=SessionResponse)
async def get_session(
    principal: Annotated[Principal | None, Depends(get_optional_principal)],
) -> SessionResponse:
    return SessionResponse(authenticated=principal is not None, principal=principal)
