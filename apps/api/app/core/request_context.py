"""Request-scoped metadata carried into audit entries and logs."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RequestContext:
    correlation_id: str
    ip_address: str | None = None
    user_agent: str | None = None

