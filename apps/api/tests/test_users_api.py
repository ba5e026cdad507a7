"""User administration API tests."""

from __future__ import annotations

import os
import unittest

from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.main import create_app
from app.schemas.audit import AuditAction
from app.schemas.auth import Role


class _SettingsEnvCase(unittest.TestCase):
    _env_keys = ("FSURVEY_AUTH_PROVIDER", "FSURVEY_JWT_SECRET")

    def setUp(self) -> None:
        self._old_env = {k: os.environ.get(k) for k in self._env_keys}
        os.environ["FSURVEY_AUTH_PROVIDER"] = "mock"
        get_settings.cache_clear()

    def tearDown(self) -> None:
        for key, value in self._old_env.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
        get_settings.cache_clear()


class UserAdministrationApiTests(_SettingsEnvCase):
    def setUp(self) -> None:
        super().setUp()
        self.app = create_app()
        self.store = self.app.state.store
        self.store.create_user(email="admin@example.com", role=Role.ADMIN, user_id="admin", full_name="Ada Admin")
        self.store.create_user(email="s@example.com", role=Role.SURVEYOR, user_id="surveyor")
        self.client = TestClient(self.app)
        self.admin = {"Authorization": "Bearer test:admin"}
        self.surveyor = {"Authorization": "Bearer test:surveyor"}

    def test_admin_lists_users(self) -> None:
        response = self.client.get("/api/v1/users", headers=self.admin)

        self.assertEqual(response.status_code, 200)
        by_id = {item["id"]: item for item in response.json()}
        self.assertEqual(set(by_id), {"admin", "surveyor"})
        self.assertEqual(by_id["admin"]["full_name"], "Ada Admin")
        self.assertEqual(by_id["surveyor"]["role"], "surveyor")

    def test_surveyor_cannot_list_users(self) -> None:
        response = self.client.get("/api/v1/users", headers=self.surveyor)

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["details"], {"permission": "read:user"})

    def test_deactivation_takes_effect_on_the_next_request(self) -> None:
        self.assertEqual(self.client.get("/api/v1/sites", headers=self.surveyor).status_code, 200)

        response = self.client.patch("/api/v1/users/surveyor/status", headers=self.admin, json={"active": False})

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["active"])
        entry = self.store.audit.entries[-1]
        self.assertIs(entry.action, AuditAction.USER_DEACTIVATE)
        self.assertEqual(entry.actor_id, "admin")
        self.assertEqual(entry.resource_id, "surveyor")

        rejected = self.client.get("/api/v1/sites", headers=self.surveyor)
        self.assertEqual(rejected.status_code, 401)

        reactivated = self.client.patch("/api/v1/users/surveyor/status", headers=self.admin, json={"active": True})
        self.assertTrue(reactivated.json()["active"])
        self.assertIs(self.store.audit.entries[-1].action, AuditAction.USER_ACTIVATE)
        self.assertEqual(self.client.get("/api/v1/sites", headers=self.surveyor).status_code, 200)

    def test_unchanged_status_writes_no_audit_entry(self) -> None:
        response = self.client.patch("/api/v1/users/surveyor/status", headers=self.admin, json={"active": True})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.store.audit.entries, [])

    def test_role_change_applies_without_new_credential(self) -> None:
        stale_credential = {"Authorization": "Bearer test:surveyor:surveyor"}
        self.assertEqual(self.client.get("/api/v1/users", headers=stale_credential).status_code, 403)

        promoted = self.client.put("/api/v1/users/surveyor", headers=self.admin, json={"role": "admin"})

        self.assertEqual(promoted.status_code, 200)
        self.assertEqual(promoted.json()["role"], "admin")
        entry = self.store.audit.entries[-1]
        self.assertIs(entry.action, AuditAction.USER_UPDATE)
        self.assertEqual(entry.actor_id, "admin")
        self.assertEqual(entry.details, {"changes": {"role": "admin"}})
        self.assertEqual(self.client.get("/api/v1/users", headers=stale_credential).status_code, 200)

        demoted = self.client.put("/api/v1/users/surveyor", headers=self.admin, json={"role": "surveyor"})
        self.assertEqual(demoted.status_code, 200)
        self.assertEqual(self.client.get("/api/v1/users", headers=stale_credential).status_code, 403)

    def test_update_changes_profile_fields(self) -> None:
        response = self.client.put(
            "/api/v1/users/surveyor",
            headers=self.admin,
            json={"full_name": "Sam Surveyor", "email": "sam@example.com"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["full_name"], "Sam Surveyor")
        self.assertEqual(response.json()["email"], "sam@example.com")
        self.assertIs(self.store.users["surveyor"].role, Role.SURVEYOR)

    def test_update_rejects_unknown_role(self) -> None:
        response = self.client.put("/api/v1/users/surveyor", headers=self.admin, json={"role": "superuser"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "VALIDATION_ERROR")
        self.assertEqual(response.json()["details"], {"fields": ["role"]})
        self.assertIs(self.store.users["surveyor"].role, Role.SURVEYOR)

    def test_update_cannot_clear_email(self) -> None:
        response = self.client.put("/api/v1/users/surveyor", headers=self.admin, json={"email": None})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["details"], {"field": "email"})
        self.assertEqual(self.store.users["surveyor"].email, "s@example.com")

    def test_surveyor_cannot_change_roles(self) -> None:
        response = self.client.put("/api/v1/users/surveyor", headers=self.surveyor, json={"role": "admin"})

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "INSUFFICIENT_PERMISSION")
        self.assertEqual(response.json()["details"], {"permission": "update:user"})
        self.assertIs(self.store.users["surveyor"].role, Role.SURVEYOR)

    def test_unchanged_update_writes_no_audit_entry(self) -> None:
        response = self.client.put("/api/v1/users/surveyor", headers=self.admin, json={"role": "surveyor"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.store.audit.entries, [])

    def test_unknown_user_returns_404(self) -> None:
        response = self.client.patch("/api/v1/users/ghost/status", headers=self.admin, json={"active": False})

        self.assertEqual(response.status_code, 404)

    def test_missing_active_flag_is_a_validation_error(self) -> None:
        response = self.client.patch("/api/v1/users/surveyor/status", headers=self.admin, json={})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["details"], {"fields": ["active"]})


if __name__ == "__main__":
    unittest.main()
