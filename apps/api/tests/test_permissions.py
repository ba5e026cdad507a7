"""Permission matrix tests."""

from __future__ import annotations

import unittest

from app.domain.permissions import Permission, PermissionMatrix, build_permission_matrix
from app.errors import ValidationError
from app.repositories.memory import InMemoryStore
from app.schemas.auth import Role


class PermissionMatrixTests(unittest.TestCase):
    def setUp(self) -> None:
        self.matrix = build_permission_matrix()

    def test_admin_holds_every_permission(self) -> None:
        for permission in Permission:
            self.assertTrue(self.matrix.has_permission(Role.ADMIN, permission), permission.value)

    def test_surveyor_grants_match_field_role(self) -> None:
        self.assertEqual(
            self.matrix.permissions_for(Role.SURVEYOR),
            frozenset(
                {
                    Permission.READ_SITE,
                    Permission.READ_ASSET,
                    Permission.CREATE_SURVEY,
                    Permission.READ_SURVEY,
                    Permission.UPDATE_SURVEY,
                    Permission.SUBMIT_SURVEY,
                    Permission.VIEW_REPORTS,
                }
            ),
        )
        self.assertFalse(self.matrix.has_permission(Role.SURVEYOR, Permission.DELETE_SURVEY))
        self.assertFalse(self.matrix.has_permission(Role.SURVEYOR, Permission.CREATE_SITE))
        self.assertFalse(self.matrix.has_permission(Role.SURVEYOR, Permission.READ_AUDIT))

    def test_wire_strings_are_accepted(self) -> None:
        self.assertTrue(self.matrix.has_permission("surveyor", "submit:survey"))
        self.assertFalse(self.matrix.has_permission("surveyor", "update:user"))

    def test_unknown_role_or_permission_is_denied(self) -> None:
        self.assertFalse(self.matrix.has_permission("auditor", Permission.READ_SITE))
        self.assertFalse(self.matrix.has_permission(Role.ADMIN, "launch:rocket"))
        self.assertEqual(self.matrix.permissions_for("auditor"), frozenset())

    def test_role_missing_from_table_has_no_permissions(self) -> None:
        matrix = PermissionMatrix({Role.ADMIN: [Permission.READ_SITE]})

        self.assertEqual(matrix.roles, (Role.ADMIN,))
        self.assertFalse(matrix.has_permission(Role.SURVEYOR, Permission.READ_SITE))

    def test_matrix_cannot_be_mutated_after_construction(self) -> None:
        with self.assertRaises(AttributeError):
            self.matrix._grants = {}
        with self.assertRaises(TypeError):
            self.matrix._grants[Role.SURVEYOR] = frozenset(Permission)
        with self.assertRaises(AttributeError):
            self.matrix.permissions_for(Role.SURVEYOR).add(Permission.DELETE_SITE)

        self.assertFalse(self.matrix.has_permission(Role.SURVEYOR, Permission.DELETE_SITE))

    def test_source_grants_are_copied(self) -> None:
        grants = {Role.SURVEYOR: [Permission.READ_SITE]}
        matrix = PermissionMatrix(grants)
        grants[Role.SURVEYOR].append(Permission.DELETE_SITE)

        self.assertFalse(matrix.has_permission(Role.SURVEYOR, Permission.DELETE_SITE))

    def test_unknown_role_string_is_rejected_at_user_creation(self) -> None:
        store = InMemoryStore()

        with self.assertRaises(ValidationError) as ctx:
            store.create_user(email="x@example.com", role="auditor")

        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(store.users, {})
        self.assertIs(store.create_user(email="y@example.com", role="surveyor").role, Role.SURVEYOR)


if __name__ == "__main__":
    unittest.main()
