"""Survey service layer."""

from collections import Counter
import csv
from datetime import UTC, datetime
import io
import logging

from app.core.logging_safety import safe_log_identifier
from app.core.request_context import RequestContext
from app.core.time_utils import as_utc
from app.domain.permissions import Permission
from app.domain.survey_fsm import ensure_mutable
from app.errors import (
    ForbiddenError,
    ForbiddenReason,
    InvalidStateTransitionError,
    NotFoundError,
    StaleVersionError,
    ValidationError,
)
from app.repositories.memory import InMemoryStore, InspectionRecord, SurveyRecord
from app.schemas.audit import AuditAction
from app.schemas.auth import Principal, Role
from app.schemas.dashboard import SurveyReport
from app.schemas.inspection import CreateInspectionRequest, Inspection, UpdateInspectionRequest
from app.schemas.survey import (
    CreateSurveyRequest,
    Survey,
    SurveyStatus,
    UpdateSurveyRequest,
)
from app.services.audit import AuditTrail
from app.services.authorization import (
    AuthorizationGuard,
    OwnershipCheck,
    owned_by,
    owned_or_unassigned,
)

logger = logging.getLogger(__name__)

_RESOURCE_TYPE = "survey"
_SURVEY_LIST_LIMIT_MAX = 500
_EXPORT_COLUMNS = (
    "asset",
    "building",
    "location",
    "condition_rating",
    "overall_condition",
    "quantity_installed",
    "quantity_working",
    "remarks",
    "gps_lat",
    "gps_lng",
    "updated_at",
)


class SurveyService:
    def __init__(self, store: InMemoryStore, guard: AuthorizationGuard, audit: AuditTrail) -> None:
        self._store = store
        self._guard = guard
        self._audit = audit

    def list_surveys(
        self,
        *,
        principal: Principal,
        status: SurveyStatus | None = None,
        site_id: str | None = None,
        surveyor_id: str | None = None,
        include_unassigned: bool = False,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Survey]:
        if principal.role is not Role.ADMIN:
            # Surveyors only ever see their own work, plus the unassigned pool when asked.
            surveyor_id = principal.user_id
        else:
            include_unassigned = False
        if limit is not None:
            limit = max(1, min(limit, _SURVEY_LIST_LIMIT_MAX))
        records = self._store.list_surveys(
            surveyor_id=surveyor_id,
            include_unassigned=include_unassigned,
            status=status,
            site_id=site_id,
            created_from=as_utc(created_from),
            created_to=as_utc(created_to),
            limit=limit,
            offset=max(0, offset),
        )
        return [self._to_survey(record) for record in records]

    def get_survey(self, *, principal: Principal, survey_id: str, context: RequestContext) -> Survey:
        record = self._load_for_read(principal, survey_id, Permission.READ_SURVEY, context)
        return self._to_survey(record)

    def create_survey(
        self,
        *,
        principal: Principal,
        payload: CreateSurveyRequest,
        context: RequestContext,
    ) -> Survey:
        site_id = (payload.site_id or "").strip()
        if not site_id:
            raise ValidationError("Site ID is required", details={"field": "site_id"})
        if self._store.get_site(site_id) is None:
            raise NotFoundError()

        if principal.role is Role.ADMIN:
            surveyor_id = payload.surveyor_id
            if surveyor_id is not None:
                self._ensure_assignable_surveyor(surveyor_id)
        else:
            # Create-with-self-assign: a surveyor's survey is always bound to them.
            surveyor_id = principal.user_id

        record = self._store.create_survey(
            site_id=site_id,
            surveyor_id=surveyor_id,
            trade=payload.trade,
            location=payload.location,
        )
        self._audit.record(
            action=AuditAction.SURVEY_CREATE,
            context=context,
            actor_id=principal.user_id,
            resource_type=_RESOURCE_TYPE,
            resource_id=record.id,
            details={"site_id": site_id, "surveyor_id": surveyor_id, "trade": payload.trade},
        )
        return self._to_survey(record)

    def update_survey(
        self,
        *,
        principal: Principal,
        survey_id: str,
        payload: UpdateSurveyRequest,
        context: RequestContext,
    ) -> Survey:
        record = self._load_for_mutation(principal, survey_id, Permission.UPDATE_SURVEY, context)
        self._ensure_version(record, payload.expected_version)
        self._ensure_mutable(principal, record, context, attempted_status=payload.status)

        changes = {
            key: value
            for key, value in payload.model_dump(include={"trade", "location"}, exclude_unset=True).items()
            if getattr(record, key) != value
        }
        # A supplied status is always a transition request, including one naming the current status.
        wants_transition = payload.status is not None
        if not changes and not wants_transition:
            return self._to_survey(record)

        previous_status = record.status
        if wants_transition:
            self._apply_transition(principal, record, payload.status, context, changes=changes)
        else:
            self._store.update_survey_fields(survey=record, changes=changes)

        details: dict[str, object] = {"changes": changes}
        if wants_transition:
            details["from_status"] = previous_status.value
            details["to_status"] = record.status.value
        self._audit.record(
            action=AuditAction.SURVEY_UPDATE,
            context=context,
            actor_id=principal.user_id,
            resource_type=_RESOURCE_TYPE,
            resource_id=record.id,
            details=details,
        )
        return self._to_survey(record)

    def transition_survey(
        self,
        *,
        principal: Principal,
        survey_id: str,
        new_status: SurveyStatus,
        context: RequestContext,
        expected_version: int | None = None,
    ) -> Survey:
        record = self._load_for_mutation(principal, survey_id, Permission.UPDATE_SURVEY, context)
        self._ensure_version(record, expected_version)

        previous_status = record.status
        self._apply_transition(principal, record, new_status, context)
        self._audit.record(
            action=AuditAction.SURVEY_TRANSITION,
            context=context,
            actor_id=principal.user_id,
            resource_type=_RESOURCE_TYPE,
            resource_id=record.id,
            details={"from_status": previous_status.value, "to_status": record.status.value},
        )
        return self._to_survey(record)

    def submit_survey(
        self,
        *,
        principal: Principal,
        survey_id: str,
        context: RequestContext,
        expected_version: int | None = None,
    ) -> Survey:
        record = self._load_for_mutation(principal, survey_id, Permission.SUBMIT_SURVEY, context)
        self._ensure_version(record, expected_version)

        if record.status is SurveyStatus.SUBMITTED:
            # Repeated submit returns the current record; submitted_at keeps the first stamp.
            logger.info(
                "survey.submit_replayed correlation_id=%s survey_id=%s",
                safe_log_identifier(context.correlation_id, prefix="cid"),
                record.id,
            )
            return self._to_survey(record)

        previous_status = record.status
        self._apply_transition(principal, record, SurveyStatus.SUBMITTED, context)
        self._audit.record(
            action=AuditAction.SURVEY_SUBMIT,
            context=context,
            actor_id=principal.user_id,
            resource_type=_RESOURCE_TYPE,
            resource_id=record.id,
            details={
                "from_status": previous_status.value,
                "submitted_at": record.submitted_at.isoformat() if record.submitted_at else None,
            },
        )
        return self._to_survey(record)

    def claim_survey(
        self,
        *,
        principal: Principal,
        survey_id: str,
        context: RequestContext,
        surveyor_id: str | None = None,
    ) -> Survey:
        record = self._load_for_mutation(
            principal,
            survey_id,
            Permission.UPDATE_SURVEY,
            context,
            ownership=owned_or_unassigned,
        )
        self._ensure_mutable(principal, record, context)

        if principal.role is Role.ADMIN:
            if surveyor_id is None:
                raise ValidationError("surveyor_id is required to assign a survey", details={"field": "surveyor_id"})
            self._ensure_assignable_surveyor(surveyor_id)
            target_id = surveyor_id
        else:
            if surveyor_id is not None and surveyor_id != principal.user_id:
                raise ValidationError(
                    "Surveyors can only claim surveys for themselves",
                    details={"field": "surveyor_id"},
                )
            target_id = principal.user_id

        if record.surveyor_id is not None:
            if record.surveyor_id == target_id:
                return self._to_survey(record)
            raise ValidationError("Survey is already assigned", details={"field": "surveyor_id"})

        self._store.assign_survey(survey=record, surveyor_id=target_id)
        self._audit.record(
            action=AuditAction.SURVEY_CLAIM,
            context=context,
            actor_id=principal.user_id,
            resource_type=_RESOURCE_TYPE,
            resource_id=record.id,
            details={"surveyor_id": target_id},
        )
        return self._to_survey(record)

    def list_inspections(self, *, principal: Principal, survey_id: str, context: RequestContext) -> list[Inspection]:
        # Same no-leak read rule as the survey itself.
        survey = self.get_survey(principal=principal, survey_id=survey_id, context=context)
        return [self._to_inspection(record) for record in self._store.list_inspections_for_survey(survey.id)]

    def create_inspection(
        self,
        *,
        principal: Principal,
        survey_id: str,
        payload: CreateInspectionRequest,
        context: RequestContext,
    ) -> Inspection:
        record = self._load_for_mutation(principal, survey_id, Permission.UPDATE_SURVEY, context)
        self._ensure_mutable(principal, record, context)

        asset = self._store.get_asset(payload.asset_id)
        if asset is None or asset.site_id != record.site_id:
            raise ValidationError("Asset does not belong to the survey's site", details={"field": "asset_id"})
        attributes = payload.model_dump(exclude={"asset_id"})
        self._ensure_quantities(attributes["quantity_installed"], attributes["quantity_working"])

        inspection = self._store.create_inspection(survey_id=record.id, asset_id=asset.id, **attributes)
        self._audit.record(
            action=AuditAction.INSPECTION_CREATE,
            context=context,
            actor_id=principal.user_id,
            resource_type="inspection",
            resource_id=inspection.id,
            details={"survey_id": record.id, "asset_id": asset.id},
        )
        return self._to_inspection(inspection)

    def update_inspection(
        self,
        *,
        principal: Principal,
        inspection_id: str,
        payload: UpdateInspectionRequest,
        context: RequestContext,
    ) -> Inspection:
        inspection = self._store.get_inspection(inspection_id)
        if inspection is None:
            raise NotFoundError()
        record = self._load_for_mutation(principal, inspection.survey_id, Permission.UPDATE_SURVEY, context)
        self._ensure_mutable(principal, record, context)

        changes = {
            key: value
            for key, value in payload.model_dump(exclude_unset=True).items()
            if getattr(inspection, key) != value
        }
        if not changes:
            return self._to_inspection(inspection)
        self._ensure_quantities(
            changes.get("quantity_installed", inspection.quantity_installed),
            changes.get("quantity_working", inspection.quantity_working),
        )

        self._store.update_inspection(inspection=inspection, changes=changes)
        self._audit.record(
            action=AuditAction.INSPECTION_UPDATE,
            context=context,
            actor_id=principal.user_id,
            resource_type="inspection",
            resource_id=inspection.id,
            details={"survey_id": record.id, "changes": changes},
        )
        return self._to_inspection(inspection)

    def get_report(self, *, principal: Principal, survey_id: str, context: RequestContext) -> SurveyReport:
        record = self._load_for_read(principal, survey_id, Permission.VIEW_REPORTS, context)
        site = self._store.get_site(record.site_id)
        inspections = self._store.list_inspections_for_survey(record.id)
        conditions = Counter(item.overall_condition for item in inspections if item.overall_condition)
        return SurveyReport(
            survey=self._to_survey(record),
            site_name=site.name if site else "",
            inspection_count=len(inspections),
            assets_on_site=len(self._store.list_assets_for_site(record.site_id)),
            assets_inspected=len({item.asset_id for item in inspections}),
            quantity_installed=sum(item.quantity_installed or 0 for item in inspections),
            quantity_working=sum(item.quantity_working or 0 for item in inspections),
            conditions=dict(sorted(conditions.items())),
            inspections=[self._to_inspection(item) for item in inspections],
            generated_at=datetime.now(UTC),
        )

    def export_report(self, *, principal: Principal, survey_id: str, context: RequestContext) -> str:
        """Render the survey's inspections as CSV, one row per inspection."""
        record = self._load_for_read(principal, survey_id, Permission.EXPORT_REPORTS, context)
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(_EXPORT_COLUMNS)
        for inspection in self._store.list_inspections_for_survey(record.id):
            asset = self._store.get_asset(inspection.asset_id)
            writer.writerow(
                [
                    asset.name if asset else "",
                    asset.building if asset else "",
                    asset.location if asset else "",
                    inspection.condition_rating,
                    inspection.overall_condition,
                    inspection.quantity_installed,
                    inspection.quantity_working,
                    inspection.remarks,
                    inspection.gps_lat,
                    inspection.gps_lng,
                    inspection.updated_at.isoformat(),
                ]
            )
        self._audit.record(
            action=AuditAction.REPORT_EXPORT,
            context=context,
            actor_id=principal.user_id,
            resource_type=_RESOURCE_TYPE,
            resource_id=record.id,
            details={"format": "csv"},
        )
        return buffer.getvalue()

    def delete_survey(self, *, principal: Principal, survey_id: str, context: RequestContext) -> None:
        record = self._load_for_mutation(principal, survey_id, Permission.DELETE_SURVEY, context)
        self._store.delete_survey(record.id)
        self._audit.record(
            action=AuditAction.SURVEY_DELETE,
            context=context,
            actor_id=principal.user_id,
            resource_type=_RESOURCE_TYPE,
            resource_id=record.id,
            details={"site_id": record.site_id, "status": record.status.value},
        )

    def _load_for_mutation(
        self,
        principal: Principal,
        survey_id: str,
        permission: Permission,
        context: RequestContext,
        *,
        ownership=owned_by,
    ) -> SurveyRecord:
        record = self._store.get_survey(survey_id)
        if record is None:
            raise NotFoundError()
        self._authorize(principal, permission, record, context, ownership(record.surveyor_id))
        return record

    def _load_for_read(
        self,
        principal: Principal,
        survey_id: str,
        permission: Permission,
        context: RequestContext,
    ) -> SurveyRecord:
        record = self._store.get_survey(survey_id)
        if record is None:
            raise NotFoundError()
        try:
            self._authorize(principal, permission, record, context, owned_by(record.surveyor_id))
        except ForbiddenError as exc:
            # Reads never confirm that someone else's survey exists.
            if exc.reason is ForbiddenReason.OWNERSHIP_VIOLATION:
                raise NotFoundError() from exc
            raise
        return record

    def _authorize(
        self,
        principal: Principal,
        permission: Permission,
        record: SurveyRecord,
        context: RequestContext,
        ownership_check: OwnershipCheck,
    ) -> None:
        self._guard.authorize(
            principal,
            permission,
            context=context,
            ownership_check=ownership_check,
            resource_type=_RESOURCE_TYPE,
            resource_id=record.id,
        )

    def _apply_transition(
        self,
        principal: Principal,
        record: SurveyRecord,
        new_status: SurveyStatus,
        context: RequestContext,
        *,
        changes: dict[str, str | None] | None = None,
    ) -> None:
        previous_status = record.status
        try:
            self._store.transition_survey_status(survey=record, new_status=new_status, changes=changes)
        except InvalidStateTransitionError:
            self._record_rejection(principal, record, new_status, context)
            raise

        logger.info(
            "survey.transition_applied correlation_id=%s survey_id=%s from=%s to=%s version=%s",
            safe_log_identifier(context.correlation_id, prefix="cid"),
            record.id,
            previous_status.value,
            new_status.value,
            record.version,
        )

    def _ensure_mutable(
        self,
        principal: Principal,
        record: SurveyRecord,
        context: RequestContext,
        *,
        attempted_status: SurveyStatus | None = None,
    ) -> None:
        try:
            ensure_mutable(record.status)
        except InvalidStateTransitionError:
            self._record_rejection(principal, record, attempted_status or record.status, context)
            raise

    def _record_rejection(
        self,
        principal: Principal,
        record: SurveyRecord,
        attempted_status: SurveyStatus,
        context: RequestContext,
    ) -> None:
        logger.warning(
            "survey.transition_rejected correlation_id=%s survey_id=%s from=%s to=%s",
            safe_log_identifier(context.correlation_id, prefix="cid"),
            record.id,
            record.status.value,
            attempted_status.value,
        )
        self._audit.record(
            action=AuditAction.SURVEY_TRANSITION_REJECTED,
            context=context,
            actor_id=principal.user_id,
            resource_type=_RESOURCE_TYPE,
            resource_id=record.id,
            details={"from_status": record.status.value, "to_status": attempted_status.value},
        )

    def _ensure_assignable_surveyor(self, surveyor_id: str) -> None:
        user = self._store.get_user(surveyor_id)
        if user is None or user.role is not Role.SURVEYOR or not user.active:
            raise ValidationError("Surveys can only be assigned to active surveyors", details={"field": "surveyor_id"})

    @staticmethod
    def _ensure_quantities(installed: int | None, working: int | None) -> None:
        if installed is not None and working is not None and working > installed:
            raise ValidationError(
                "quantity_working cannot exceed quantity_installed",
                details={"field": "quantity_working"},
            )

    @staticmethod
    def _ensure_version(record: SurveyRecord, expected_version: int | None) -> None:
        if expected_version is not None and expected_version != record.version:
            raise StaleVersionError(expected_version=expected_version, current_version=record.version)

    @staticmethod
    def _to_survey(record: SurveyRecord) -> Survey:
        return Survey(
            id=record.id,
            site_id=record.site_id,
            surveyor_id=record.surveyor_id,
            trade=record.trade,
            location=record.location,
            status=record.status,
            version=record.version,
            created_at=record.created_at,
            updated_at=record.updated_at,
            submitted_at=record.submitted_at,
        )

    @staticmethod
    def _to_inspection(record: InspectionRecord) -> Inspection:
        return Inspection(
            id=record.id,
            survey_id=record.survey_id,
            asset_id=record.asset_id,
            condition_rating=record.condition_rating,
            overall_condition=record.overall_condition,
            quantity_installed=record.quantity_installed,
            quantity_working=record.quantity_working,
            remarks=record.remarks,
            gps_lat=record.gps_lat,
            gps_lng=record.gps_lng,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
