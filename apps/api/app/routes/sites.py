"""Site and asset routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status

from app.core.request_context import RequestContext
from app.domain.permissions import Permission
from app.routes.dependencies import get_request_context, get_site_service, require_permission
from app.schemas.auth import Principal
from app.schemas.error import ForbiddenErrorResponse, NoLeakNotFoundError, UnauthorizedError
from app.schemas.site import (
    Asset,
    CreateAssetRequest,
    CreateSiteRequest,
    Site,
    UpdateAssetRequest,
    UpdateSiteRequest,
)
from app.services.sites import SiteService

router = APIRouter(tags=["Sites"])

_DENIALS = {401: {"model": UnauthorizedError}, 403: {"model": ForbiddenErrorResponse}}
_DENIALS_OR_MISSING = {**_DENIALS, 404: {"model": NoLeakNotFoundError}}


@router.get("/sites", response_model=list[Site], responses=_DENIALS)
async def list_sites(
    _: Annotated[Principal, Depends(require_permission(Permission.READ_SITE))],
    service: Annotated[SiteService, Depends(get_site_service)],
) -> list[Site]:
    return service.list_sites()


@router.post("/sites", response_model=Site, status_code=status.HTTP_201_CREATED, responses=_DENIALS)
async def create_site(
    payload: CreateSiteRequest,
    principal: Annotated[Principal, Depends(require_permission(Permission.CREATE_SITE))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SiteService, Depends(get_site_service)],
) -> Site:
    return service.create_site(principal=principal, payload=payload, context=context)


@router.get("/sites/{siteId}", response_model=Site, responses=_DENIALS_OR_MISSING)
async def get_site(
    site_id: Annotated[str, Path(alias="siteId")],
    _: Annotated[Principal, Depends(require_permission(Permission.READ_SITE))],
    service: Annotated[SiteService, Depends(get_site_service)],
) -> Site:
    return service.get_site(site_id=site_id)


@router.put("/sites/{siteId}", response_model=Site, responses=_DENIALS_OR_MISSING)
async def update_site(
    site_id: Annotated[str, Path(alias="siteId")],
    payload: UpdateSiteRequest,
    principal: Annotated[Principal, Depends(require_permission(Permission.UPDATE_SITE))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SiteService, Depends(get_site_service)],
) -> Site:
    return service.update_site(principal=principal, site_id=site_id, payload=payload, context=context)


@router.delete("/sites/{siteId}", status_code=status.HTTP_204_NO_CONTENT, responses=_DENIALS_OR_MISSING)
async def delete_site(
    site_id: Annotated[str, Path(alias="siteId")],
    principal: Annotated[Principal, Depends(require_permission(Permission.DELETE_SITE))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SiteService, Depends(get_site_service)],
) -> Response:
    service.delete_site(principal=principal, site_id=site_id, context=context)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/sites/{siteId}/assets", response_model=list[Asset], responses=_DENIALS_OR_MISSING)
async def list_assets(
    site_id: Annotated[str, Path(alias="siteId")],
    _: Annotated[Principal, Depends(require_permission(Permission.READ_ASSET))],
    service: Annotated[SiteService, Depends(get_site_service)],
) -> list[Asset]:
    return service.list_assets(site_id=site_id)


@router.post(
    "/sites/{siteId}/assets",
    response_model=Asset,
    status_code=status.HTTP_201_CREATED,
    responses=_DENIALS_OR_MISSING,
)
async def create_asset(
    site_id: Annotated[str, Path(alias="siteId")],
    payload: CreateAssetRequest,
    principal: Annotated[Principal, Depends(require_permission(Permission.CREATE_ASSET))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SiteService, Depends(get_site_service)],
) -> Asset:
    return service.create_asset(principal=principal, site_id=site_id, payload=payload, context=context)


@router.put("/assets/{assetId}", response_model=Asset, responses=_DENIALS_OR_MISSING)
async def update_asset(
    asset_id: Annotated[str, Path(alias="assetId")],
    payload: UpdateAssetRequest,
    principal: Annotated[Principal, Depends(require_permission(Permission.UPDATE_ASSET))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SiteService, Depends(get_site_service)],
) -> Asset:
    return service.update_asset(principal=principal, asset_id=asset_id, payload=payload, context=context)


@router.delete("/assets/{assetId}", status_code=status.HTTP_204_NO_CONTENT, responses=_DENIALS_OR_MISSING)
async def delete_asset(
    asset_id: Annotated[str, Path(alias="assetId")],
    principal: Annotated[Principal, Depends(require_permission(Permission.DELETE_ASSET))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SiteService, Depends(get_site_service)],
) -> Response:
    service.delete_asset(principal=principal, asset_id=asset_id, context=context)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
