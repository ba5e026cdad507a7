"""Survey routes."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Response, status

from app.core.request_context import RequestContext
from app.domain.permissions import Permission
from app.routes.dependencies import get_request_context, get_survey_service, require_permission
from app.schemas.auth import Principal
from app.schemas.dashboard import SurveyReport
from app.schemas.error import (
    ForbiddenErrorResponse,
    FsmTransitionError,
    NoLeakNotFoundError,
    UnauthorizedError,
    ValidationErrorResponse,
)
from app.schemas.inspection import CreateInspectionRequest, Inspection, UpdateInspectionRequest
from app.schemas.survey import (
    ClaimSurveyRequest,
    CreateSurveyRequest,
    SubmitSurveyRequest,
    Survey,
    SurveyStatus,
    TransitionSurveyRequest,
    UpdateSurveyRequest,
)
from app.services.surveys import SurveyService

router = APIRouter(prefix="/surveys", tags=["Surveys"])

_DENIALS = {401: {"model": UnauthorizedError}, 403: {"model": ForbiddenErrorResponse}}
_MUTATION_RESPONSES = {
    **_DENIALS,
    404: {"model": NoLeakNotFoundError},
    409: {"model": FsmTransitionError, "description": "Invalid transition or stale version"},
}


@router.get("", response_model=list[Survey], responses=_DENIALS)
async def list_surveys(
    principal: Annotated[Principal, Depends(require_permission(Permission.READ_SURVEY))],
    service: Annotated[SurveyService, Depends(get_survey_service)],
    status_filter: Annotated[SurveyStatus | None, Query(alias="status")] = None,
    site_id: Annotated[str | None, Query(alias="siteId")] = None,
    surveyor_id: Annotated[str | None, Query(alias="surveyorId")] = None,
    include_unassigned: Annotated[bool, Query(alias="includeUnassigned")] = False,
    created_from: Annotated[datetime | None, Query(alias="createdFrom")] = None,
    created_to: Annotated[datetime | None, Query(alias="createdTo")] = None,
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[Survey]:
    return service.list_surveys(
        principal=principal,
        status=status_filter,
        site_id=site_id,
        surveyor_id=surveyor_id,
        include_unassigned=include_unassigned,
        created_from=created_from,
        created_to=created_to,
        limit=limit,
        offset=offset,
    )


@router.post(
    "",
    response_model=Survey,
    status_code=status.HTTP_201_CREATED,
    responses={**_DENIALS, 400: {"model": ValidationErrorResponse}, 404: {"model": NoLeakNotFoundError}},
)
async def create_survey(
    payload: CreateSurveyRequest,
    principal: Annotated[Principal, Depends(require_permission(Permission.CREATE_SURVEY))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SurveyService, Depends(get_survey_service)],
) -> Survey:
    return service.create_survey(principal=principal, payload=payload, context=context)


@router.get("/{surveyId}", response_model=Survey, responses={**_DENIALS, 404: {"model": NoLeakNotFoundError}})
async def get_survey(
    survey_id: Annotated[str, Path(alias="surveyId")],
    principal: Annotated[Principal, Depends(require_permission(Permission.READ_SURVEY))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SurveyService, Depends(get_survey_service)],
) -> Survey:
    return service.get_survey(principal=principal, survey_id=survey_id, context=context)


@router.put("/{surveyId}", response_model=Survey, responses=_MUTATION_RESPONSES)
async def update_survey(
    survey_id: Annotated[str, Path(alias="surveyId")],
    payload: UpdateSurveyRequest,
    principal: Annotated[Principal, Depends(require_permission(Permission.UPDATE_SURVEY))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SurveyService, Depends(get_survey_service)],
) -> Survey:
    return service.update_survey(principal=principal, survey_id=survey_id, payload=payload, context=context)


@router.post("/{surveyId}/transition", response_model=Survey, responses=_MUTATION_RESPONSES)
async def transition_survey(
    survey_id: Annotated[str, Path(alias="surveyId")],
    payload: TransitionSurveyRequest,
    principal: Annotated[Principal, Depends(require_permission(Permission.UPDATE_SURVEY))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SurveyService, Depends(get_survey_service)],
) -> Survey:
    return service.transition_survey(
        principal=principal,
        survey_id=survey_id,
        new_status=payload.status,
        expected_version=payload.expected_version,
        context=context,
    )


@router.post("/{surveyId}/submit", response_model=Survey, responses=_MUTATION_RESPONSES)
async def submit_survey(
    survey_id: Annotated[str, Path(alias="surveyId")],
    principal: Annotated[Principal, Depends(require_permission(Permission.SUBMIT_SURVEY))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SurveyService, Depends(get_survey_service)],
    payload: SubmitSurveyRequest | None = None,
) -> Survey:
    return service.submit_survey(
        principal=principal,
        survey_id=survey_id,
        expected_version=payload.expected_version if payload is not None else None,
        context=context,
    )


@router.post(
    "/{surveyId}/claim",
    response_model=Survey,
    responses={**_DENIALS, 400: {"model": ValidationErrorResponse}, 404: {"model": NoLeakNotFoundError}},
)
async def claim_survey(
    survey_id: Annotated[str, Path(alias="surveyId")],
    principal: Annotated[Principal, Depends(require_permission(Permission.UPDATE_SURVEY))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SurveyService, Depends(get_survey_service)],
    payload: ClaimSurveyRequest | None = None,
) -> Survey:
    return service.claim_survey(
        principal=principal,
        survey_id=survey_id,
        surveyor_id=payload.surveyor_id if payload is not None else None,
        context=context,
    )


_INSPECTION_WRITE_RESPONSES = {
    **_DENIALS,
    400: {"model": ValidationErrorResponse},
    404: {"model": NoLeakNotFoundError},
    409: {"model": FsmTransitionError, "description": "Survey is in a terminal status"},
}


@router.get(
    "/{surveyId}/inspections",
    response_model=list[Inspection],
    responses={**_DENIALS, 404: {"model": NoLeakNotFoundError}},
)
async def list_inspections(
    survey_id: Annotated[str, Path(alias="surveyId")],
    principal: Annotated[Principal, Depends(require_permission(Permission.READ_SURVEY))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SurveyService, Depends(get_survey_service)],
) -> list[Inspection]:
    return service.list_inspections(principal=principal, survey_id=survey_id, context=context)


@router.post(
    "/{surveyId}/inspections",
    response_model=Inspection,
    status_code=status.HTTP_201_CREATED,
    responses=_INSPECTION_WRITE_RESPONSES,
)
async def create_inspection(
    survey_id: Annotated[str, Path(alias="surveyId")],
    payload: CreateInspectionRequest,
    principal: Annotated[Principal, Depends(require_permission(Permission.UPDATE_SURVEY))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SurveyService, Depends(get_survey_service)],
) -> Inspection:
    return service.create_inspection(principal=principal, survey_id=survey_id, payload=payload, context=context)


@router.put("/inspections/{inspectionId}", response_model=Inspection, responses=_INSPECTION_WRITE_RESPONSES)
async def update_inspection(
    inspection_id: Annotated[str, Path(alias="inspectionId")],
    payload: UpdateInspectionRequest,
    principal: Annotated[Principal, Depends(require_permission(Permission.UPDATE_SURVEY))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SurveyService, Depends(get_survey_service)],
) -> Inspection:
    return service.update_inspection(
        principal=principal,
        inspection_id=inspection_id,
        payload=payload,
        context=context,
    )


@router.get(
    "/{surveyId}/report",
    response_model=SurveyReport,
    responses={**_DENIALS, 404: {"model": NoLeakNotFoundError}},
)
async def get_survey_report(
    survey_id: Annotated[str, Path(alias="surveyId")],
    principal: Annotated[Principal, Depends(require_permission(Permission.VIEW_REPORTS))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SurveyService, Depends(get_survey_service)],
) -> SurveyReport:
    return service.get_report(principal=principal, survey_id=survey_id, context=context)


@router.get(
    "/{surveyId}/report/export",
    response_class=Response,
    responses={**_DENIALS, 404: {"model": NoLeakNotFoundError}, 200: {"content": {"text/csv": {}}}},
)
async def export_survey_report(
    survey_id: Annotated[str, Path(alias="surveyId")],
    principal: Annotated[Principal, Depends(require_permission(Permission.EXPORT_REPORTS))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SurveyService, Depends(get_survey_service)],
) -> Response:
    body = service.export_report(principal=principal, survey_id=survey_id, context=context)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="survey-{survey_id}.csv"'},
    )


@router.delete(
    "/{surveyId}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**_DENIALS, 404: {"model": NoLeakNotFoundError}},
)
async def delete_survey(
    survey_id: Annotated[str, Path(alias="surveyId")],
    principal: Annotated[Principal, Depends(require_permission(Permission.DELETE_SURVEY))],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[SurveyService, Depends(get_survey_service)],
) -> Response:
    service.delete_survey(principal=principal, survey_id=survey_id, context=context)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
