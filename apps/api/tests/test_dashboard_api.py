"""Dashboard analytics and survey report API tests."""

from __future__ import annotations

import csv
from datetime import UTC, datetime, timedelta
import io
import os
import unittest

from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.main import create_app
from app.repositories.memory import InMemoryStore
from app.schemas.audit import AuditAction
from app.schemas.auth import Role
from app.schemas.survey import SurveyStatus
from app.services.dashboard import DashboardService


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


class DashboardServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryStore()
        self.store.create_user(email="a@example.com", role=Role.SURVEYOR, user_id="surveyor-a", full_name="Ann")
        self.store.create_user(email="b@example.com", role=Role.SURVEYOR, user_id="surveyor-b", active=False)
        self.store.create_user(email="admin@example.com", role=Role.ADMIN, user_id="admin")
        self.site = self.store.create_site(name="Riverside Plant")
        self.service = DashboardService(self.store)

    def _survey(self, status: SurveyStatus, *, surveyor_id: str | None = "surveyor-a", updated_at=None):
        record = self.store.create_survey(site_id=self.site.id, surveyor_id=surveyor_id)
        record.status = status
        if updated_at is not None:
            record.updated_at = updated_at
        return record

    def test_stats_count_pending_reviews_and_completions_today(self) -> None:
        now = datetime(2024, 5, 20, 15, 0, tzinfo=UTC)
        self._survey(SurveyStatus.DRAFT)
        self._survey(SurveyStatus.SUBMITTED)
        self._survey(SurveyStatus.SUBMITTED, surveyor_id=None)
        self._survey(SurveyStatus.COMPLETED, updated_at=now - timedelta(hours=2))
        self._survey(SurveyStatus.COMPLETED, updated_at=now - timedelta(days=1))

        stats = self.service.get_stats(now=now)

        self.assertEqual(stats.total_surveys, 5)
        self.assertEqual(stats.pending_reviews, 2)
        self.assertEqual(stats.active_surveyors, 1)
        self.assertEqual(stats.completed_today, 1)

    def test_user_activity_counts_assigned_surveys(self) -> None:
        self._survey(SurveyStatus.DRAFT)
        self._survey(SurveyStatus.SUBMITTED)
        self._survey(SurveyStatus.DRAFT, surveyor_id="surveyor-b")

        activity = {item.id: item for item in self.service.list_user_activity()}

        self.assertEqual(activity["surveyor-a"].survey_count, 2)
        self.assertEqual(activity["surveyor-b"].survey_count, 1)
        self.assertEqual(activity["admin"].survey_count, 0)
        self.assertEqual(self.service.list_user_activity()[0].id, "surveyor-a")

    def test_admin_survey_view_filters_by_date_and_names_people_and_sites(self) -> None:
        old = self._survey(SurveyStatus.DRAFT)
        old.created_at = datetime(2024, 1, 5, tzinfo=UTC)
        recent = self._survey(SurveyStatus.SUBMITTED)
        recent.created_at = datetime(2024, 3, 5, tzinfo=UTC)

        results = self.service.list_surveys(start=datetime(2024, 2, 1))

        self.assertEqual([item.id for item in results], [recent.id])
        self.assertEqual(results[0].surveyor_name, "Ann")
        self.assertEqual(results[0].site_name, "Riverside Plant")
        self.assertEqual(self.service.list_surveys(end=datetime(2024, 2, 1, tzinfo=UTC))[0].id, old.id)


class DashboardApiTests(_SettingsEnvCase):
    def setUp(self) -> None:
        super().setUp()
        self.app = create_app()
        self.store = self.app.state.store
        self.store.create_user(email="admin@example.com", role=Role.ADMIN, user_id="admin")
        self.store.create_user(email="a@example.com", role=Role.SURVEYOR, user_id="surveyor-a")
        self.store.create_user(email="b@example.com", role=Role.SURVEYOR, user_id="surveyor-b")
        self.site = self.store.create_site(name="Riverside Plant")
        self.asset = self.store.create_asset(site_id=self.site.id, name="Boiler 1", building="B1")
        self.store.create_asset(site_id=self.site.id, name="Pump 2")
        self.survey = self.store.create_survey(site_id=self.site.id, surveyor_id="surveyor-a")
        self.client = TestClient(self.app)

        self.admin = {"Authorization": "Bearer test:admin"}
        self.user_a = {"Authorization": "Bearer test:surveyor-a"}
        self.user_b = {"Authorization": "Bearer test:surveyor-b"}

    def test_admin_reads_stats(self) -> None:
        response = self.client.get("/api/v1/dashboard/stats", headers=self.admin)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"total_surveys": 1, "pending_reviews": 0, "active_surveyors": 2, "completed_today": 0},
        )

    def test_surveyor_is_denied_analytics(self) -> None:
        for path in ("/api/v1/dashboard/stats", "/api/v1/dashboard/surveys", "/api/v1/dashboard/users"):
            with self.subTest(path=path):
                response = self.client.get(path, headers=self.user_a)

                self.assertEqual(response.status_code, 403)
                self.assertEqual(response.json()["code"], "INSUFFICIENT_PERMISSION")
                self.assertEqual(response.json()["details"], {"permission": "view:analytics"})
                denied = self.store.audit.entries[-1]
                self.assertIs(denied.action, AuditAction.ACCESS_DENIED)
                self.assertEqual(denied.actor_id, "surveyor-a")

    def test_anonymous_dashboard_request_is_unauthenticated(self) -> None:
        response = self.client.get("/api/v1/dashboard/stats")

        self.assertEqual(response.status_code, 401)

    def test_admin_survey_view_accepts_naive_date_bounds(self) -> None:
        response = self.client.get(
            "/api/v1/dashboard/surveys",
            headers=self.admin,
            params={"startDate": "2020-01-01T00:00:00", "status": "draft"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["id"] for item in response.json()], [self.survey.id])
        self.assertEqual(response.json()[0]["site_name"], "Riverside Plant")

    def test_owner_reads_survey_report(self) -> None:
        self.client.post(
            f"/api/v1/surveys/{self.survey.id}/inspections",
            headers=self.user_a,
            json={
                "asset_id": self.asset.id,
                "overall_condition": "fair",
                "quantity_installed": 4,
                "quantity_working": 3,
            },
        )

        response = self.client.get(f"/api/v1/surveys/{self.survey.id}/report", headers=self.user_a)

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["survey"]["id"], self.survey.id)
        self.assertEqual(body["site_name"], "Riverside Plant")
        self.assertEqual(body["inspection_count"], 1)
        self.assertEqual(body["assets_on_site"], 2)
        self.assertEqual(body["assets_inspected"], 1)
        self.assertEqual((body["quantity_installed"], body["quantity_working"]), (4, 3))
        self.assertEqual(body["conditions"], {"fair": 1})

    def test_report_of_another_surveyors_survey_is_hidden(self) -> None:
        response = self.client.get(f"/api/v1/surveys/{self.survey.id}/report", headers=self.user_b)

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "RESOURCE_NOT_FOUND")
        self.assertIs(self.store.audit.entries[-1].action, AuditAction.ACCESS_DENIED)

    def test_export_is_admin_only_and_audited(self) -> None:
        self.client.post(
            f"/api/v1/surveys/{self.survey.id}/inspections",
            headers=self.user_a,
            json={"asset_id": self.asset.id, "remarks": "Valve, leaking"},
        )

        denied = self.client.get(f"/api/v1/surveys/{self.survey.id}/report/export", headers=self.user_a)
        self.assertEqual(denied.status_code, 403)
        self.assertEqual(denied.json()["details"], {"permission": "export:reports"})

        response = self.client.get(f"/api/v1/surveys/{self.survey.id}/report/export", headers=self.admin)

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/csv"))
        rows = list(csv.reader(io.StringIO(response.text)))
        self.assertEqual(rows[0][:3], ["asset", "building", "location"])
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[1][0], "Boiler 1")
        self.assertEqual(rows[1][7], "Valve, leaking")
        self.assertIs(self.store.audit.entries[-1].action, AuditAction.REPORT_EXPORT)


if __name__ == "__main__":
    unittest.main()
