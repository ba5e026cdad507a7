"""FastAPI application entrypoint."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

from app.core.logging_safety import safe_log_identifier
from app.domain.permissions import build_permission_matrix
from app.errors import ApiError
from app.repositories.memory import InMemoryStore
from app.routes import (
    audit_router,
    dashboard_router,
    session_router,
    sites_router,
    surveys_router,
    users_router,
)
from app.schemas.error import FsmTransitionError, ValidationErrorResponse, VersionConflictError

logger = logging.getLogger(__name__)

_VALIDATION_ERROR_REF = "#/components/schemas/ValidationErrorResponse"

_SURVEY_409_ONEOF_REFS: list[str] = [
    "#/components/schemas/FsmTransitionError",
    "#/components/schemas/VersionConflictError",
]

_SURVEY_VERSIONED_OPERATIONS: list[tuple[str, str]] = [
    ("/api/v1/surveys/{surveyId}", "put"),
    ("/api/v1/surveys/{surveyId}/transition", "post"),
    ("/api/v1/surveys/{surveyId}/submit", "post"),
]


def _field_path(location: tuple | list) -> str:
    # Drop the leading "body"/"query"/"path" segment FastAPI adds.
    parts = [str(part) for part in location[1:]] or [str(part) for part in location]
    return ".".join(parts)


def _replace_validation_responses(schema: dict) -> None:
    """Document request validation failures as 400 VALIDATION_ERROR instead of FastAPI's 422."""
    schemas = schema.setdefault("components", {}).setdefault("schemas", {})
    if "ValidationErrorResponse" not in schemas:
        schemas["ValidationErrorResponse"] = ValidationErrorResponse.model_json_schema()

    for path_item in schema.get("paths", {}).values():
        for operation in path_item.values():
            responses = operation.get("responses")
            if not isinstance(responses, dict) or "422" not in responses:
                continue
            responses.pop("422")
            bad_request = responses.setdefault("400", {"description": "Validation Error"})
            content = bad_request.setdefault("content", {}).setdefault("application/json", {})
            content["schema"] = {"$ref": _VALIDATION_ERROR_REF}

    # FastAPI's own 422 models are unused once every operation points at the 400 schema.
    schemas.pop("HTTPValidationError", None)
    schemas.pop("ValidationError", None)


def _register_component(schemas: dict, model: type) -> None:
    definition = model.model_json_schema(ref_template="#/components/schemas/{model}")
    for name, nested in definition.pop("$defs", {}).items():
        schemas.setdefault(name, nested)
    schemas.setdefault(model.__name__, definition)


def _apply_survey_conflict_schema(schema: dict) -> None:
    """Document 409 on versioned survey writes as either a transition error or a version conflict."""
    schemas = schema.setdefault("components", {}).setdefault("schemas", {})
    _register_component(schemas, FsmTransitionError)
    _register_component(schemas, VersionConflictError)

    for path, method in _SURVEY_VERSIONED_OPERATIONS:
        operation = schema.get("paths", {}).get(path, {}).get(method)
        if not operation:
            continue
        responses = operation.setdefault("responses", {})
        conflict = responses.setdefault("409", {"description": "Invalid transition or stale version"})
        content = conflict.setdefault("content", {}).setdefault("application/json", {})
        content["schema"] = {"oneOf": [{"$ref": ref} for ref in _SURVEY_409_ONEOF_REFS]}


def create_app() -> FastAPI:
    app = FastAPI(title="Facility Survey API", version="1.0.0")
    app.state.store = InMemoryStore()
    app.state.permission_matrix = build_permission_matrix()

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json", exclude_none=True),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = sorted({_field_path(error.get("loc", ())) for error in exc.errors()})
        logger.info(
            "request.validation_failed correlation_id=%s method=%s path=%s fields=%s",
            safe_log_identifier(getattr(request.state, "correlation_id", None), prefix="cid"),
            request.method,
            request.url.path,
            ",".join(fields),
        )
        payload = ValidationErrorResponse(
            code="VALIDATION_ERROR",
            message="Invalid request payload",
            details={"fields": fields},
        )
        return JSONResponse(status_code=400, content=payload.model_dump(mode="json"))

    api_prefix = "/api/v1"
    app.include_router(session_router, prefix=api_prefix)
    app.include_router(sites_router, prefix=api_prefix)
    app.include_router(surveys_router, prefix=api_prefix)
    app.include_router(users_router, prefix=api_prefix)
    app.include_router(audit_router, prefix=api_prefix)
    app.include_router(dashboard_router, prefix=api_prefix)

    def custom_openapi() -> dict:
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        _replace_validation_responses(schema)
        _apply_survey_conflict_schema(schema)
        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi

    return app


app = create_app()
