"""Route modules."""

from .audit import router as audit_router
from .dashboard import router as dashboard_router
from .session import router as session_router
from .sites import router as sites_router
from .surveys import router as surveys_router
from .users import router as users_router

__all__ = [
    "audit_router",
    "dashboard_router",
    "session_router",
    "sites_router",
    "surveys_router",
    "users_router",
]
