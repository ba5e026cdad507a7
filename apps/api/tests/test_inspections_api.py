"""Asset inspection API tests."""

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


class InspectionApiTests(_SettingsEnvCase):
    def setUp(self) -> None:
        super().setUp()
        self.app = create_app()
        self.store = self.app.state.store
        self.store.create_user(email="admin@example.com", role=Role.ADMIN, user_id="admin")
        self.store.create_user(email="a@example.com", role=Role.SURVEYOR, user_id="surveyor-a")
        self.store.create_user(email="b@example.com", role=Role.SURVEYOR, user_id="surveyor-b")
        self.site = self.store.create_site(name="Riverside Plant")
        self.asset = self.store.create_asset(site_id=self.site.id, name="Boiler 1", building="B1")
        self.survey = self.store.create_survey(site_id=self.site.id, surveyor_id="surveyor-a")
        self.client = TestClient(self.app)

        self.admin = {"Authorization": "Bearer test:admin"}
        self.user_a = {"Authorization": "Bearer test:surveyor-a"}
        self.user_b = {"Authorization": "Bearer test:surveyor-b"}

    def _url(self, survey_id: str | None = None) -> str:
        return f"/api/v1/surveys/{survey_id or self.survey.id}/inspections"

    def _create(self, headers: dict[str, str], **fields):
        return self.client.post(self._url(), headers=headers, json={"asset_id": self.asset.id, **fields})

    def test_owner_records_and_lists_inspections(self) -> None:
        created = self._create(
            self.user_a,
            condition_rating="B",
            overall_condition="fair",
            quantity_installed=4,
            quantity_working=3,
            gps_lat=53.8,
            gps_lng=-1.55,
        )

        self.assertEqual(created.status_code, 201, created.text)
        body = created.json()
        self.assertEqual(body["survey_id"], self.survey.id)
        self.assertEqual(body["asset_id"], self.asset.id)
        self.assertEqual(body["quantity_working"], 3)
        entry = self.store.audit.entries[-1]
        self.assertIs(entry.action, AuditAction.INSPECTION_CREATE)
        self.assertEqual(entry.resource_id, body["id"])

        second = self._create(self.user_a, remarks="Second visit")
        listed = self.client.get(self._url(), headers=self.user_a)

        self.assertEqual(listed.status_code, 200)
        self.assertEqual([item["id"] for item in listed.json()], [body["id"], second.json()["id"]])

    def test_other_surveyor_cannot_write_or_see_inspections(self) -> None:
        created = self._create(self.user_a).json()

        write = self._create(self.user_b)
        self.assertEqual(write.status_code, 403)
        self.assertEqual(write.json()["code"], "OWNERSHIP_VIOLATION")

        update = self.client.put(
            f"/api/v1/surveys/inspections/{created['id']}",
            headers=self.user_b,
            json={"remarks": "tampered"},
        )
        self.assertEqual(update.status_code, 403)
        self.assertIsNone(self.store.inspections[created["id"]].remarks)

        read = self.client.get(self._url(), headers=self.user_b)
        self.assertEqual(read.status_code, 404)
        self.assertEqual(read.json()["code"], "RESOURCE_NOT_FOUND")
        self.assertEqual(len(self.store.inspections), 1)

    def test_admin_can_write_any_survey_inspection(self) -> None:
        created = self._create(self.admin, overall_condition="good")

        self.assertEqual(created.status_code, 201)
        self.assertEqual(self.client.get(self._url(), headers=self.admin).status_code, 200)

    def test_partial_update_keeps_unsent_fields(self) -> None:
        created = self._create(self.user_a, condition_rating="C", remarks="Leaking valve").json()

        response = self.client.put(
            f"/api/v1/surveys/inspections/{created['id']}",
            headers=self.user_a,
            json={"condition_rating": "B"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["condition_rating"], "B")
        self.assertEqual(response.json()["remarks"], "Leaking valve")
        entry = self.store.audit.entries[-1]
        self.assertIs(entry.action, AuditAction.INSPECTION_UPDATE)
        self.assertEqual(entry.details["changes"], {"condition_rating": "B"})

    def test_unknown_inspection_returns_404(self) -> None:
        response = self.client.put("/api/v1/surveys/inspections/ghost", headers=self.admin, json={"remarks": "x"})

        self.assertEqual(response.status_code, 404)

    def test_asset_is_required_and_must_belong_to_the_survey_site(self) -> None:
        missing = self.client.post(self._url(), headers=self.user_a, json={"remarks": "no asset"})
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(missing.json()["details"], {"fields": ["asset_id"]})

        elsewhere = self.store.create_site(name="Other Plant")
        foreign = self.store.create_asset(site_id=elsewhere.id, name="Chiller")
        response = self.client.post(self._url(), headers=self.user_a, json={"asset_id": foreign.id})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["details"], {"field": "asset_id"})
        self.assertEqual(self.store.inspections, {})

    def test_working_quantity_cannot_exceed_installed(self) -> None:
        response = self._create(self.user_a, quantity_installed=2, quantity_working=5)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["details"], {"field": "quantity_working"})

    def test_coordinates_are_range_checked(self) -> None:
        response = self._create(self.user_a, gps_lat=91.0)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["details"], {"fields": ["gps_lat"]})

    def test_completed_survey_inspections_are_read_only(self) -> None:
        created = self._create(self.user_a).json()
        self.client.post(f"/api/v1/surveys/{self.survey.id}/submit", headers=self.user_a)
        for status in ("under_review", "completed"):
            self.client.post(
                f"/api/v1/surveys/{self.survey.id}/transition",
                headers=self.admin,
                json={"status": status},
            )

        added = self._create(self.admin)
        edited = self.client.put(
            f"/api/v1/surveys/inspections/{created['id']}",
            headers=self.admin,
            json={"remarks": "late edit"},
        )

        self.assertEqual(added.status_code, 409)
        self.assertEqual(added.json()["code"], "FSM_TERMINAL_IMMUTABLE")
        self.assertEqual(edited.status_code, 409)
        self.assertEqual(len(self.store.inspections), 1)
        self.assertIsNone(self.store.inspections[created["id"]].remarks)

    def test_deleting_survey_or_asset_removes_its_inspections(self) -> None:
        self._create(self.user_a)
        other_asset = self.store.create_asset(site_id=self.site.id, name="Pump 2")
        kept = self._create(self.user_a, asset_id=other_asset.id).json()

        self.assertEqual(self.client.delete(f"/api/v1/assets/{self.asset.id}", headers=self.admin).status_code, 204)
        self.assertEqual(set(self.store.inspections), {kept["id"]})

        self.assertEqual(self.client.delete(f"/api/v1/surveys/{self.survey.id}", headers=self.admin).status_code, 204)
        self.assertEqual(self.store.inspections, {})


if __name__ == "__main__":
    unittest.main()
