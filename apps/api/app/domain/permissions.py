"""Role to permission matrix."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from types import MappingProxyType

from app.schemas.auth import Role


class Permission(str, Enum):
    CREATE_USER = "create:user"
    READ_USER = "read:user"
    UPDATE_USER = "update:user"
    DELETE_USER = "delete:user"

    CREATE_SITE = "create:site"
    READ_SITE = "read:site"
    UPDATE_SITE = "update:site"
    DELETE_SITE = "delete:site"

    CREATE_ASSET = "create:asset"
    READ_ASSET = "read:asset"
    UPDATE_ASSET = "update:asset"
    DELETE_ASSET = "delete:asset"

    CREATE_SURVEY = "create:survey"
    READ_SURVEY = "read:survey"
    UPDATE_SURVEY = "update:survey"
    DELETE_SURVEY = "delete:survey"
    SUBMIT_SURVEY = "submit:survey"

    VIEW_REPORTS = "view:reports"
    EXPORT_REPORTS = "export:reports"
    VIEW_ANALYTICS = "view:analytics"

    READ_AUDIT = "read:audit"


_SURVEYOR_PERMISSIONS = (
    Permission.READ_SITE,
    Permission.READ_ASSET,
    Permission.CREATE_SURVEY,
    Permission.READ_SURVEY,
    Permission.UPDATE_SURVEY,
    Permission.SUBMIT_SURVEY,
    Permission.VIEW_REPORTS,
)


class PermissionMatrix:
    """Immutable role to permission-set lookup. Anything not granted is denied."""

    __slots__ = ("_grants",)

    def __init__(self, grants: Mapping[Role, Iterable[Permission]]) -> None:
        frozen = {Role(role): frozenset(Permission(p) for p in permissions) for role, permissions in grants.items()}
        self._grants: Mapping[Role, frozenset[Permission]] = MappingProxyType(frozen)

    def __setattr__(self, name: str, value: object) -> None:
        if hasattr(self, "_grants"):
            raise AttributeError("PermissionMatrix is immutable")
        object.__setattr__(self, name, value)

    def has_permission(self, role: Role | str, permission: Permission | str) -> bool:
        try:
            role_key = Role(role)
            permission_key = Permission(permission)
        except ValueError:
            return False
        return permission_key in self._grants.get(role_key, frozenset())

    def permissions_for(self, role: Role | str) -> frozenset[Permission]:
        try:
            return self._grants.get(Role(role), frozenset())
        except ValueError:
            return frozenset()

    @property
    def roles(self) -> tuple[Role, ...]:
        return tuple(self._grants.keys())


def build_permission_matrix() -> PermissionMatrix:
    """Build the deployment's permission matrix. Called once at start-up."""
    return PermissionMatrix(
        {
            Role.ADMIN: tuple(Permission),
            Role.SURVEYOR: _SURVEYOR_PERMISSIONS,
        }
    )


__all__ = ["Permission", "PermissionMatrix", "build_permission_matrix"]
