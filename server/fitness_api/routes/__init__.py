"""API route modules."""
from .google_fit import router as google_fit_router
from .metrics import router as metrics_router
from .insights import router as insights_router
from .automation import router as automation_router

__all__ = [
    "google_fit_router",
    "metrics_router",
    "insights_router",
    "automation_router",
]
