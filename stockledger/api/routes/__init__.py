"""API route modules."""

from stockledger.api.routes.alerts import router as alerts_router
from stockledger.api.routes.bulk import router as bulk_router
from stockledger.api.routes.health import router as health_router
from stockledger.api.routes.inventory import router as inventory_router
from stockledger.api.routes.reports import router as reports_router

__all__ = [
    "alerts_router",
    "bulk_router",
    "health_router",
    "inventory_router",
    "reports_router",
]
