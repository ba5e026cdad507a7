"""User administration service layer."""

import logging

from app.core.logging_safety import safe_log_identifier
from app.core.request_context import RequestContext
from app.errors import NotFoundError, ValidationError
from app.repositories.memory import InMemoryStore, UserRecord
from app.schemas.audit import AuditAction
from app.schemas.auth import Principal, Role
from app.schemas.user import UpdateUserRequest, User
from app.services.audit import AuditTrail

logger = logging.getLogger(__name__)

_NON_NULLABLE_FIELDS = ("email", "role")


class UserService:
    def __init__(self, store: InMemoryStore, audit: AuditTrail) -> None:
        self._store = store
        self._audit = audit

    def list_users(self) -> list[User]:
        return [self._to_user(record) for record in self._store.list_users()]

    def set_user_active(
        self,
        *,
        principal: Principal,
        user_id: str,
        active: bool,
        context: RequestContext,
    ) -> User:
        record = self._store.get_user(user_id)
        if record is None:
            raise NotFoundError()
        if record.active is active:
            return self._to_user(record)

        self._store.set_user_active(user=record, active=active)
        logger.info(
            "user.status_changed correlation_id=%s user_id=%s active=%s",
            safe_log_identifier(context.correlation_id, prefix="cid"),
            safe_log_identifier(record.id, prefix="pid"),
            active,
        )
        self._audit.record(
            action=AuditAction.USER_ACTIVATE if active else AuditAction.USER_DEACTIVATE,
            context=context,
            actor_id=principal.user_id,
            resource_type="user",
            resource_id=record.id,
            details={"active": active},
        )
        return self._to_user(record)

    def update_user(
        self,
        *,
        principal: Principal,
        user_id: str,
        payload: UpdateUserRequest,
        context: RequestContext,
    ) -> User:
        """Apply profile and role edits; a role change takes effect on the user's next request."""
        record = self._store.get_user(user_id)
        if record is None:
            raise NotFoundError()

        requested = payload.model_dump(exclude_unset=True)
        for key in _NON_NULLABLE_FIELDS:
            if key in requested and requested[key] is None:
                raise ValidationError(f"{key} cannot be cleared", details={"field": key})
        changes = {key: value for key, value in requested.items() if getattr(record, key) != value}
        if not changes:
            return self._to_user(record)

        previous_role = record.role
        self._store.update_user(user=record, changes=changes)
        if "role" in changes:
            logger.info(
                "user.role_changed correlation_id=%s user_id=%s from=%s to=%s",
                safe_log_identifier(context.correlation_id, prefix="cid"),
                safe_log_identifier(record.id, prefix="pid"),
                previous_role.value,
                record.role.value,
            )
        self._audit.record(
            action=AuditAction.USER_UPDATE,
            context=context,
            actor_id=principal.user_id,
            resource_type="user",
            resource_id=record.id,
            details={
                "changes": {key: value.value if isinstance(value, Role) else value for key, value in changes.items()},
            },
        )
        return self._to_user(record)

    @staticmethod
    def _to_user(record: UserRecord) -> User:
        return User(
            id=record.id,
            email=record.email,
            full_name=record.full_name,
            role=record.role,
            active=record.active,
            created_at=record.created_at,
        )
