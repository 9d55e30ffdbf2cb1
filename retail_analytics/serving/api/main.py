"""
FastAPI Application Factory

Creates and configures the main API application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import structlog

from retail_analytics.config import get_settings
from retail_analytics.config.logging import configure_logging
from retail_analytics.database.connection import close_database, init_database
from retail_analytics.serving.api.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from retail_analytics.serving.api.routes import (
    analytics_router,
    health_router,
    inventory_router,
    quality_router,
    reporting_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    logger.info("Starting Retail Analytics API")

    try:
        await init_database()
    except Exception as e:
        # Health endpoints report the outage; analytics requests fail until it recovers
        logger.warning("Database init failed", error=str(e))

    yield

    logger.info("Shutting down...")
    await close_database()


def create_api_app(with_lifespan: bool = True) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        with_lifespan: Connect to the database on startup (disable in tests
            that override the snapshot dependency)

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Retail Analytics API",
        description="Sales, profitability, inventory and data quality analytics for a store chain",
        version=settings.version,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan if with_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(analytics_router, prefix="/api/v1/analytics", tags=["Analytics"])
    app.include_router(inventory_router, prefix="/api/v1/inventory", tags=["Inventory"])
    app.include_router(reporting_router, prefix="/api/v1/reporting", tags=["Reporting"])
    app.include_router(quality_router, prefix="/api/v1/quality", tags=["Quality"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Retail Analytics API",
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
        }

    return app
