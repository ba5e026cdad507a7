"""Admin dashboard aggregates."""

from collections import Counter
from datetime import UTC, datetime

from app.core.time_utils import as_utc
from app.repositories.memory import InMemoryStore
from app.schemas.auth import Role
from app.schemas.dashboard import DashboardStats, DashboardSurvey, UserActivity
from app.schemas.survey import SurveyStatus


class DashboardService:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def get_stats(self, *, now: datetime | None = None) -> DashboardStats:
        today = (now or datetime.now(UTC)).astimezone(UTC).date()
        surveys = list(self._store.surveys.values())
        return DashboardStats(
            total_surveys=len(surveys),
            pending_reviews=sum(1 for survey in surveys if survey.status is SurveyStatus.SUBMITTED),
            active_surveyors=sum(
                1 for user in self._store.users.values() if user.role is Role.SURVEYOR and user.active
            ),
            # Completed is terminal, so updated_at is the completion time.
            completed_today=sum(
                1
                for survey in surveys
                if survey.status is SurveyStatus.COMPLETED and survey.updated_at.astimezone(UTC).date() == today
            ),
        )

    def list_surveys(
        self,
        *,
        status: SurveyStatus | None = None,
        surveyor_id: str | None = None,
        site_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[DashboardSurvey]:
        records = self._store.list_surveys(
            surveyor_id=surveyor_id,
            status=status,
            site_id=site_id,
            created_from=as_utc(start),
            created_to=as_utc(end),
        )
        results = []
        for record in records:
            surveyor = self._store.get_user(record.surveyor_id) if record.surveyor_id else None
            site = self._store.get_site(record.site_id)
            results.append(
                DashboardSurvey(
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
                    surveyor_name=surveyor.full_name if surveyor else None,
                    site_name=site.name if site else None,
                )
            )
        return results

    def list_user_activity(self) -> list[UserActivity]:
        counts = Counter(survey.surveyor_id for survey in self._store.surveys.values() if survey.surveyor_id)
        activity = [
            UserActivity(
                id=user.id,
                email=user.email,
                full_name=user.full_name,
                role=user.role,
                active=user.active,
                survey_count=counts.get(user.id, 0),
            )
            for user in self._store.list_users()
        ]
        activity.sort(key=lambda item: item.survey_count, reverse=True)
        return activity
