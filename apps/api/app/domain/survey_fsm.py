"""Survey lifecycle transition rules."""

from app.errors import InvalidStateTransitionError
from app.schemas.survey import SurveyStatus

INITIAL_STATUS = SurveyStatus.DRAFT

_TERMINAL_STATES: set[SurveyStatus] = {SurveyStatus.COMPLETED}

_ALLOWED_TRANSITIONS: dict[SurveyStatus, set[SurveyStatus]] = {
    SurveyStatus.DRAFT: {SurveyStatus.IN_PROGRESS, SurveyStatus.SUBMITTED},
    SurveyStatus.IN_PROGRESS: {SurveyStatus.SUBMITTED},
    SurveyStatus.SUBMITTED: {SurveyStatus.UNDER_REVIEW, SurveyStatus.DRAFT},
    SurveyStatus.UNDER_REVIEW: {SurveyStatus.COMPLETED, SurveyStatus.IN_PROGRESS},
    SurveyStatus.COMPLETED: set(),
}


def is_terminal(status: SurveyStatus) -> bool:
    return status in _TERMINAL_STATES


def allowed_next_statuses(status: SurveyStatus) -> list[SurveyStatus]:
    """Return deterministically ordered allowed successors for a status."""
    return sorted(_ALLOWED_TRANSITIONS.get(status, set()), key=lambda s: s.value)


def is_transition_allowed(old_status: SurveyStatus, new_status: SurveyStatus) -> bool:
    return new_status in _ALLOWED_TRANSITIONS.get(old_status, set())


def ensure_transition(old_status: SurveyStatus, new_status: SurveyStatus) -> None:
    """Validate transition according to lifecycle rules."""
    if old_status in _TERMINAL_STATES:
        raise InvalidStateTransitionError(
            current_status=old_status,
            attempted_status=new_status,
            allowed_next_statuses=[],
            terminal=True,
        )

    if not is_transition_allowed(old_status, new_status):
        raise InvalidStateTransitionError(
            current_status=old_status,
            attempted_status=new_status,
            allowed_next_statuses=allowed_next_statuses(old_status),
        )


def ensure_mutable(status: SurveyStatus) -> None:
    """Refuse any edit to a survey that has reached a terminal status."""
    if status in _TERMINAL_STATES:
        raise InvalidStateTransitionError(
            current_status=status,
            attempted_status=status,
            allowed_next_statuses=[],
            terminal=True,
        )
