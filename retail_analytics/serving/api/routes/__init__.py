"""
API Routes Module
"""
from .health import router as health_router
from .analytics import router as analytics_router
from .inventory import router as inventory_router
from .reporting import router as reporting_router
from .quality import router as quality_router

__all__ = [
    "health_router",
    "analytics_router",
    "inventory_router",
    "reporting_router",
    "quality_router",
]
