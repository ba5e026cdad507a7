"""Site and asset service layer."""

from app.core.request_context import RequestContext
from app.errors import NotFoundError
from app.repositories.memory import AssetRecord, InMemoryStore, SiteRecord
from app.schemas.audit import AuditAction
from app.schemas.auth import Principal
from app.schemas.site import (
    Asset,
    CreateAssetRequest,
    CreateSiteRequest,
    Site,
    UpdateAssetRequest,
    UpdateSiteRequest,
)
from app.services.audit import AuditTrail


class SiteService:
    """Sites carry no owner; the route-level permission check is the whole policy."""

    def __init__(self, store: InMemoryStore, audit: AuditTrail) -> None:
        self._store = store
        self._audit = audit

    def list_sites(self) -> list[Site]:
        return [self._to_site(record) for record in self._store.list_sites()]

    def get_site(self, *, site_id: str) -> Site:
        return self._to_site(self._require_site(site_id))

    def create_site(self, *, principal: Principal, payload: CreateSiteRequest, context: RequestContext) -> Site:
        record = self._store.create_site(name=payload.name, location=payload.location, client=payload.client)
        self._audit.record(
            action=AuditAction.SITE_CREATE,
            context=context,
            actor_id=principal.user_id,
            resource_type="site",
            resource_id=record.id,
            details={"name": record.name},
        )
        return self._to_site(record)

    def update_site(
        self,
        *,
        principal: Principal,
        site_id: str,
        payload: UpdateSiteRequest,
        context: RequestContext,
    ) -> Site:
        record = self._require_site(site_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes:
            self._store.update_site(site=record, changes=changes)
            self._audit.record(
                action=AuditAction.SITE_UPDATE,
                context=context,
                actor_id=principal.user_id,
                resource_type="site",
                resource_id=record.id,
                details={"changes": changes},
            )
        return self._to_site(record)

    def delete_site(self, *, principal: Principal, site_id: str, context: RequestContext) -> None:
        record = self._require_site(site_id)
        surveys_removed, assets_removed = self._store.delete_site(record.id)
        self._audit.record(
            action=AuditAction.SITE_DELETE,
            context=context,
            actor_id=principal.user_id,
            resource_type="site",
            resource_id=record.id,
            details={
                "name": record.name,
                "surveys_removed": surveys_removed,
                "assets_removed": assets_removed,
            },
        )

    def list_assets(self, *, site_id: str) -> list[Asset]:
        self._require_site(site_id)
        return [self._to_asset(record) for record in self._store.list_assets_for_site(site_id)]

    def create_asset(
        self,
        *,
        principal: Principal,
        site_id: str,
        payload: CreateAssetRequest,
        context: RequestContext,
    ) -> Asset:
        self._require_site(site_id)
        record = self._store.create_asset(site_id=site_id, **payload.model_dump())
        self._audit.record(
            action=AuditAction.ASSET_CREATE,
            context=context,
            actor_id=principal.user_id,
            resource_type="asset",
            resource_id=record.id,
            details={"site_id": site_id, "name": record.name},
        )
        return self._to_asset(record)

    def update_asset(
        self,
        *,
        principal: Principal,
        asset_id: str,
        payload: UpdateAssetRequest,
        context: RequestContext,
    ) -> Asset:
        record = self._require_asset(asset_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes:
            self._store.update_asset(asset=record, changes=changes)
            self._audit.record(
                action=AuditAction.ASSET_UPDATE,
                context=context,
                actor_id=principal.user_id,
                resource_type="asset",
                resource_id=record.id,
                details={"changes": changes},
            )
        return self._to_asset(record)

    def delete_asset(self, *, principal: Principal, asset_id: str, context: RequestContext) -> None:
        record = self._require_asset(asset_id)
        self._store.delete_asset(record.id)
        self._audit.record(
            action=AuditAction.ASSET_DELETE,
            context=context,
            actor_id=principal.user_id,
            resource_type="asset",
            resource_id=record.id,
            details={"site_id": record.site_id},
        )

    def _require_site(self, site_id: str) -> SiteRecord:
        record = self._store.get_site(site_id)
        if record is None:
            raise NotFoundError()
        return record

    def _require_asset(self, asset_id: str) -> AssetRecord:
        record = self._store.get_asset(asset_id)
        if record is None:
            raise NotFoundError()
        return record

    @staticmethod
    def _to_site(record: SiteRecord) -> Site:
        return Site(
            id=record.id,
            name=record.name,
            location=record.location,
            client=record.client,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    @staticmethod
    def _to_asset(record: AssetRecord) -> Asset:
        return Asset(
            id=record.id,
            site_id=record.site_id,
            name=record.name,
            service_line=record.service_line,
            building=record.building,
            location=record.location,
            ref_code=record.ref_code,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
