"""Admin dashboard routes."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.domain.permissions import Permission
from app.routes.dependencies import get_dashboard_service, require_permission
from app.schemas.auth import Principal
from app.schemas.dashboard import DashboardStats, DashboardSurvey, UserActivity
from app.schemas.error import ForbiddenErrorResponse, UnauthorizedError
from app.schemas.survey import SurveyStatus
from app.services.dashboard import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

_DENIALS = {401: {"model": UnauthorizedError}, 403: {"model": ForbiddenErrorResponse}}


@router.get("/stats", response_model=DashboardStats, responses=_DENIALS)
async def get_dashboard_stats(
    _: Annotated[Principal, Depends(require_permission(Permission.VIEW_ANALYTICS))],
    service: Annotated[DashboardService, Depends(get_dashboard_service)],
) -> DashboardStats:
    return service.get_stats()


@router.get("/surveys", response_model=list[DashboardSurvey], responses=_DENIALS)
async def list_dashboard_surveys(
    _: Annotated[Principal, Depends(require_permission(Permission.VIEW_ANALYTICS))],
    service: Annotated[DashboardService, Depends(get_dashboard_service)],
    status_filter: Annotated[SurveyStatus | None, Query(alias="status")] = None,
    surveyor_id: Annotated[str | None, Query(alias="surveyorId")] = None,
    site_id: Annotated[str | None, Query(alias="siteId")] = None,
    start_date: Annotated[datetime | None, Query(alias="startDate")] = None,
    end_date: Annotated[datetime | None, Query(alias="endDate")] = None,
) -> list[DashboardSurvey]:
    return service.list_surveys(
        status=status_filter,
        surveyor_id=surveyor_id,
        site_id=site_id,
        start=start_date,
        end=end_date,
    )


@router.get("/users", response_model=list[UserActivity], responses=_DENIALS)
async def list_user_activity(
    _: Annotated[Principal, Depends(require_permission(Permission.VIEW_ANALYTICS))],
    service: Annotated[DashboardService, Depends(get_dashboard_service)],
) -> list[UserActivity]:
    return service.list_user_activity()
