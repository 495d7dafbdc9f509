"""API routers."""

from civicwatch.routers.health import router as health_router
from civicwatch.routers.reports import router as reports_router

__all__ = ["health_router", "reports_router"]
