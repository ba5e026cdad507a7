"""In-memory repositories used by the API scaffold and tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from app.adapters.audit.base import AuditSink
from app.adapters.auth.base import UserStatusLookup
from app.domain.survey_fsm import INITIAL_STATUS, ensure_transition
from app.errors import ValidationError
from app.schemas.audit import AuditEntry, AuditQuery
from app.schemas.auth import Role, UserStatus
from app.schemas.survey import SurveyStatus


@dataclass(slots=True)
class UserRecord:
    id: str
    email: str
    role: Role
    active: bool
    created_at: datetime
    full_name: str | None = None


@dataclass(slots=True)
class SiteRecord:
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    location: str | None = None
    client: str | None = None


@dataclass(slots=True)
class AssetRecord:
    id: str
    site_id: str
    name: str
    created_at: datetime
    updated_at: datetime
    service_line: str | None = None
    building: str | None = None
    location: str | None = None
    ref_code: str | None = None


@dataclass(slots=True)
class SurveyRecord:
    id: str
    site_id: str
    surveyor_id: str | None
    status: SurveyStatus
    created_at: datetime
    updated_at: datetime
    trade: str | None = None
    location: str | None = None
    submitted_at: datetime | None = None
    version: int = 1


@dataclass(slots=True)
class InspectionRecord:
    id: str
    survey_id: str
    asset_id: str
    created_at: datetime
    updated_at: datetime
    condition_rating: str | None = None
    overall_condition: str | None = None
    quantity_installed: int | None = None
    quantity_working: int | None = None
    remarks: str | None = None
    gps_lat: float | None = None
    gps_lng: float | None = None


@dataclass(slots=True)
class InMemoryAuditSink(AuditSink):
    """Append-only audit storage with an injectable outage for failure testing."""

    entries: list[AuditEntry] = field(default_factory=list)
    outage_message: str | None = None

    def append(self, entry: AuditEntry) -> None:
        if self.outage_message is not None:
            raise RuntimeError(self.outage_message)
        self.entries.append(entry.model_copy(deep=True))

    def query(self, filters: AuditQuery, *, limit: int, offset: int) -> list[AuditEntry]:
        if self.outage_message is not None:
            raise RuntimeError(self.outage_message)

        matched = [
            (position, entry)
            for position, entry in enumerate(self.entries)
            if self._matches(entry, filters)
        ]
        # Insertion position breaks ties between entries written within the same clock tick.
        matched.sort(key=lambda item: (item[1].created_at, item[0]), reverse=True)
        # Callers get copies; stored history is never handed out by reference.
        return [entry.model_copy(deep=True) for _, entry in matched[offset : offset + limit]]

    @staticmethod
    def _matches(entry: AuditEntry, filters: AuditQuery) -> bool:
        if filters.actor_id is not None and entry.actor_id != filters.actor_id:
            return False
        if filters.action is not None and entry.action is not filters.action:
            return False
        if filters.resource_type is not None and entry.resource_type != filters.resource_type:
            return False
        if filters.resource_id is not None and entry.resource_id != filters.resource_id:
            return False
        if filters.start is not None and entry.created_at < filters.start:
            return False
        if filters.end is not None and entry.created_at > filters.end:
            return False
        return True


@dataclass(slots=True)
class InMemoryStore(UserStatusLookup):
    """Simple, deterministic persistence layer for scaffolding and tests."""

    users: dict[str, UserRecord] = field(default_factory=dict)
    sites: dict[str, SiteRecord] = field(default_factory=dict)
    assets: dict[str, AssetRecord] = field(default_factory=dict)
    surveys: dict[str, SurveyRecord] = field(default_factory=dict)
    inspections: dict[str, InspectionRecord] = field(default_factory=dict)
    audit: InMemoryAuditSink = field(default_factory=InMemoryAuditSink)
    user_lookup_count: int = 0
    site_write_count: int = 0
    asset_write_count: int = 0
    survey_write_count: int = 0
    inspection_write_count: int = 0

    # Users

    def create_user(
        self,
        *,
        email: str,
        role: Role,
        active: bool = True,
        full_name: str | None = None,
        user_id: str | None = None,
    ) -> UserRecord:
        try:
            role = Role(role)
        except ValueError as exc:
            raise ValidationError("Unknown role", details={"field": "role", "value": str(role)}) from exc
        user = UserRecord(
            id=user_id or str(uuid4()),
            email=email,
            role=role,
            active=active,
            created_at=datetime.now(UTC),
            full_name=full_name,
        )
        self.users[user.id] = user
        return user

    def get_user(self, user_id: str) -> UserRecord | None:
        return self.users.get(user_id)

    def list_users(self) -> list[UserRecord]:
        return sorted(self.users.values(), key=lambda record: record.created_at, reverse=True)

    def set_user_active(self, *, user: UserRecord, active: bool) -> None:
        user.active = active

    def update_user(self, *, user: UserRecord, changes: dict[str, object]) -> None:
        for key, value in changes.items():
            setattr(user, key, value)

    def get_user_status(self, user_id: str) -> UserStatus | None:
        self.user_lookup_count += 1
        user = self.users.get(user_id)
        if user is None:
            return None
        return UserStatus(id=user.id, email=user.email, role=user.role, active=user.active)

    # Sites

    def create_site(self, *, name: str, location: str | None = None, client: str | None = None) -> SiteRecord:
        now = datetime.now(UTC)
        site = SiteRecord(id=str(uuid4()), name=name, location=location, client=client, created_at=now, updated_at=now)
        self.sites[site.id] = site
        self.site_write_count += 1
        return site

    def get_site(self, site_id: str) -> SiteRecord | None:
        return self.sites.get(site_id)

    def list_sites(self) -> list[SiteRecord]:
        return sorted(self.sites.values(), key=lambda record: record.name)

    def update_site(self, *, site: SiteRecord, changes: dict[str, str | None]) -> None:
        for key, value in changes.items():
            setattr(site, key, value)
        site.updated_at = datetime.now(UTC)
        self.site_write_count += 1

    def delete_site(self, site_id: str) -> tuple[int, int]:
        """Delete a site and everything recorded against it; return (surveys, assets) removed."""
        survey_ids = [survey.id for survey in self.surveys.values() if survey.site_id == site_id]
        asset_ids = [asset.id for asset in self.assets.values() if asset.site_id == site_id]
        for survey_id in survey_ids:
            self._drop_inspections(survey_id=survey_id)
            del self.surveys[survey_id]
        for asset_id in asset_ids:
            self._drop_inspections(asset_id=asset_id)
            del self.assets[asset_id]
        del self.sites[site_id]
        self.site_write_count += 1
        return len(survey_ids), len(asset_ids)

    # Assets

    def create_asset(self, *, site_id: str, name: str, **attributes: str | None) -> AssetRecord:
        now = datetime.now(UTC)
        asset = AssetRecord(id=str(uuid4()), site_id=site_id, name=name, created_at=now, updated_at=now, **attributes)
        self.assets[asset.id] = asset
        self.asset_write_count += 1
        return asset

    def get_asset(self, asset_id: str) -> AssetRecord | None:
        return self.assets.get(asset_id)

    def list_assets_for_site(self, site_id: str) -> list[AssetRecord]:
        assets = [asset for asset in self.assets.values() if asset.site_id == site_id]
        assets.sort(key=lambda record: (record.building or "", record.location or "", record.name))
        return assets

    def update_asset(self, *, asset: AssetRecord, changes: dict[str, str | None]) -> None:
        for key, value in changes.items():
            setattr(asset, key, value)
        asset.updated_at = datetime.now(UTC)
        self.asset_write_count += 1

    def delete_asset(self, asset_id: str) -> None:
        self._drop_inspections(asset_id=asset_id)
        del self.assets[asset_id]
        self.asset_write_count += 1

    # Surveys

    def create_survey(
        self,
        *,
        site_id: str,
        surveyor_id: str | None,
        trade: str | None = None,
        location: str | None = None,
    ) -> SurveyRecord:
        now = datetime.now(UTC)
        survey = SurveyRecord(
            id=str(uuid4()),
            site_id=site_id,
            surveyor_id=surveyor_id,
            status=INITIAL_STATUS,
            created_at=now,
            updated_at=now,
            trade=trade,
            location=location,
        )
        self.surveys[survey.id] = survey
        self.survey_write_count += 1
        return survey

    def get_survey(self, survey_id: str) -> SurveyRecord | None:
        return self.surveys.get(survey_id)

    def list_surveys(
        self,
        *,
        surveyor_id: str | None = None,
        include_unassigned: bool = False,
        status: SurveyStatus | None = None,
        site_id: str | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[SurveyRecord]:
        # Insertion position breaks ties between surveys created within the same clock tick.
        ordered = list(enumerate(self.surveys.values()))
        ordered.sort(key=lambda item: (item[1].created_at, item[0]), reverse=True)
        surveys = [survey for _, survey in ordered]
        if surveyor_id is not None:
            surveys = [
                survey
                for survey in surveys
                if survey.surveyor_id == surveyor_id or (include_unassigned and survey.surveyor_id is None)
            ]
        if status is not None:
            surveys = [survey for survey in surveys if survey.status is status]
        if site_id is not None:
            surveys = [survey for survey in surveys if survey.site_id == site_id]
        if created_from is not None:
            surveys = [survey for survey in surveys if survey.created_at >= created_from]
        if created_to is not None:
            surveys = [survey for survey in surveys if survey.created_at <= created_to]
        end = None if limit is None else offset + limit
        return surveys[offset:end]

    def update_survey_fields(self, *, survey: SurveyRecord, changes: dict[str, str | None]) -> None:
        for key, value in changes.items():
            setattr(survey, key, value)
        self._touch_survey(survey)

    def transition_survey_status(
        self,
        *,
        survey: SurveyRecord,
        new_status: SurveyStatus,
        changes: dict[str, str | None] | None = None,
    ) -> None:
        """Apply an FSM-validated status mutation, plus any field changes, as one write."""
        ensure_transition(survey.status, new_status)
        now = datetime.now(UTC)
        for key, value in (changes or {}).items():
            setattr(survey, key, value)
        survey.status = new_status
        if new_status is SurveyStatus.SUBMITTED:
            survey.submitted_at = now
        self._touch_survey(survey, now=now)

    def assign_survey(self, *, survey: SurveyRecord, surveyor_id: str) -> None:
        survey.surveyor_id = surveyor_id
        self._touch_survey(survey)

    def delete_survey(self, survey_id: str) -> None:
        self._drop_inspections(survey_id=survey_id)
        del self.surveys[survey_id]
        self.survey_write_count += 1

    def _touch_survey(self, survey: SurveyRecord, *, now: datetime | None = None) -> None:
        survey.updated_at = now or datetime.now(UTC)
        survey.version += 1
        self.survey_write_count += 1

    # Inspections

    def create_inspection(self, *, survey_id: str, asset_id: str, **attributes: object) -> InspectionRecord:
        now = datetime.now(UTC)
        inspection = InspectionRecord(
            id=str(uuid4()),
            survey_id=survey_id,
            asset_id=asset_id,
            created_at=now,
            updated_at=now,
            **attributes,
        )
        self.inspections[inspection.id] = inspection
        self.inspection_write_count += 1
        return inspection

    def get_inspection(self, inspection_id: str) -> InspectionRecord | None:
        return self.inspections.get(inspection_id)

    def list_inspections_for_survey(self, survey_id: str) -> list[InspectionRecord]:
        ordered = [
            (position, inspection)
            for position, inspection in enumerate(self.inspections.values())
            if inspection.survey_id == survey_id
        ]
        ordered.sort(key=lambda item: (item[1].created_at, item[0]))
        return [inspection for _, inspection in ordered]

    def update_inspection(self, *, inspection: InspectionRecord, changes: dict[str, object]) -> None:
        for key, value in changes.items():
            setattr(inspection, key, value)
        inspection.updated_at = datetime.now(UTC)
        self.inspection_write_count += 1

    def _drop_inspections(self, *, survey_id: str | None = None, asset_id: str | None = None) -> None:
        doomed = [
            inspection.id
            for inspection in self.inspections.values()
            if inspection.survey_id == survey_id or inspection.asset_id == asset_id
        ]
        for inspection_id in doomed:
            del self.inspections[inspection_id]
        if doomed:
            self.inspection_write_count += 1
