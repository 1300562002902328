"""FastAPI application factory for uiforge.

Creates the application with:
- Cache administration endpoints (/cache)
- Liveness and readiness probes
- Prometheus metrics
- Lifecycle management for the cache and its Redis connection
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from uiforge import __version__
from uiforge.api.errors import generic_exception_handler
from uiforge.api.middleware import RequestIdMiddleware
from uiforge.api.routers import cache as cache_router
from uiforge.api.routers import health
from uiforge.api.routers import metrics as metrics_router
from uiforge.cache import CacheService
from uiforge.config import settings
from uiforge.observability import configure_logging, get_metrics

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    On startup:
    - Configure structured logging
    - Initialize Prometheus metrics
    - Build the cache service, unless one was installed on app.state

    On shutdown:
    - Close the Redis connection
    """
    configure_logging(
        json_format=settings.env != "dev",
        level=settings.log_level,
    )
    get_metrics()

    logger.info(f"Starting {settings.app_name} ({settings.env})")
    cache: CacheService | None = getattr(app.state, "cache", None)
    if cache is None:
        cache = CacheService.from_settings()
        app.state.cache = cache

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await cache.close()
    logger.info(f"{settings.app_name} shutdown complete")


def create_app(cache: CacheService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        cache: Cache service to serve from; built from settings at startup
            when omitted
    """
    app = FastAPI(
        title="uiforge",
        description="Cache service for generated UI components and work sessions",
        version=__version__,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    if cache is not None:
        app.state.cache = cache

    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    app.include_router(health.router)
    app.include_router(cache_router.router)
    if settings.enable_metrics:
        app.include_router(metrics_router.router)

    return app


app = create_app()
