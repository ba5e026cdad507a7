"""Audit sink interface."""

from abc import ABC, abstractmethod

from app.schemas.audit import AuditEntry, AuditQuery


class AuditSink(ABC):
    """Durable append-only store for audit entries. No update or delete path exists."""

    @abstractmethod
    def append(self, entry: AuditEntry) -> None:
        """Persist one entry."""

    @abstractmethod
    def query(self, filters: AuditQuery, *, limit: int, offset: int) -> list[AuditEntry]:
        """Return matching entries, newest first."""


__all__ = ["AuditSink"]
