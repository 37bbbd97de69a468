"""HealthBridge - FastAPI Application."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from healthbridge import __version__
from healthbridge.api.router import api_router
from healthbridge.config import get_settings
from healthbridge.core.logging import get_logger, setup_logging
from healthbridge.middleware.correlation import CorrelationIdMiddleware
from healthbridge.services.connect.stores import create_store


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    setup_logging()
    settings = get_settings()
    app.state.health_store = create_store(settings)
    get_logger(__name__).info(
        "Health store bound",
        backend=settings.health_store_backend,
        time_zone=settings.time_zone,
    )

    yield

    # Shutdown
    app.state.health_store = None


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="HealthBridge",
        description="Canonical health data translation and aggregation service",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Execution order: CORS -> Correlation -> Request
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(api_router)

    return app


# Create app instance
app = create_app()
