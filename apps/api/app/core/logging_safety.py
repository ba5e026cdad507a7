"""Utilities for safe structured logging fields."""

from __future__ import annotations

import hashlib
from typing import Any


def safe_log_identifier(value: Any, *, prefix: str) -> str:
    """Return a deterministic non-reversible token for log correlation fields."""
    text = str(value or "").strip()
    if not text:
        return f"{prefix}-missing"

    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]
    return f"{prefix}-{digest}"


def safe_actor_identifier(actor_id: str | None) -> str:
    """Principal ids are hashed; anonymous actors are tagged explicitly."""
    if actor_id is None:
        return "pid-anonymous"
    return safe_log_identifier(actor_id, prefix="pid")
