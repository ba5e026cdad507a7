"""Audit trail service layer."""

from datetime import UTC, datetime
import logging
from typing import Any
from uuid import uuid4

from app.adapters.audit.base import AuditSink
from app.core.logging_safety import safe_actor_identifier, safe_log_identifier
from app.core.request_context import RequestContext
from app.schemas.audit import AuditAction, AuditEntry, AuditPage, AuditQuery

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 100


class AuditTrail:
    """Best-effort append-only audit log.

    ``record`` never raises: a failing sink is reported on the operational log and the
    audited operation carries on. Availability of the business operation wins over
    completeness of the trail.
    """

    def __init__(self, sink: AuditSink, *, max_query_limit: int = 500) -> None:
        self._sink = sink
        self._max_query_limit = max_query_limit

    def record(
        self,
        *,
        action: AuditAction,
        context: RequestContext,
        actor_id: str | None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditEntry | None:
        try:
            entry = AuditEntry(
                id=str(uuid4()),
                actor_id=actor_id,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                details=details,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
                created_at=datetime.now(UTC),
            )
            self._sink.append(entry)
        except Exception as exc:
            logger.warning(
                "audit.write_failed correlation_id=%s action=%s actor_id=%s reason=%s",
                safe_log_identifier(context.correlation_id, prefix="cid"),
                action.value,
                safe_actor_identifier(actor_id),
                type(exc).__name__,
                exc_info=True,
            )
            return None
        return entry

    def query(
        self,
        filters: AuditQuery | None = None,
        *,
        limit: int = DEFAULT_QUERY_LIMIT,
        offset: int = 0,
    ) -> AuditPage:
        limit = max(1, min(limit, self._max_query_limit))
        offset = max(0, offset)
        entries = self._sink.query(filters or AuditQuery(), limit=limit, offset=offset)
        return AuditPage(entries=entries, limit=limit, offset=offset)
