"""Audit sink adapters."""

from .base import AuditSink

__all__ = ["AuditSink"]
