"""Routers package."""

from .billing import router as billing_router
from .bills import router as bills_router
from .clients import router as clients_router
from .reports import router as reports_router
from .trips import router as trips_router

__all__ = [
    "billing_router",
    "bills_router",
    "clients_router",
    "reports_router",
    "trips_router",
]
