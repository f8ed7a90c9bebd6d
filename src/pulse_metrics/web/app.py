"""
FastAPI application for Pulse Metrics.

PURPOSE: Application factory and server runner.
AI CONTEXT: Creates the app with all routes registered and its
collaborators stored on app.state.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..__version__ import __version__
from ..config import Config
from ..errors import InputError, RenderError
from ..metrics_service import MetricsService
from .caching import ClientThrottle, HourlyCache
from .geolocation import IpApiLocationResolver, LocationResolver, StaticLocationResolver
from .routes import chart_router, ingest_router

__all__ = ["create_app", "run_server"]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """
    Manage application lifecycle with startup/shutdown hooks.

    Startup logs the version and, when PULSE_RETENTION_DAYS is set,
    purges snapshots older than the retention period once. Shutdown
    closes the geolocation HTTP client.

    Args:
        app: The FastAPI application instance (provided by FastAPI).

    Yields:
        None. Control returns to FastAPI to handle requests.
    """
    logger.info(f"Pulse Metrics starting (v{__version__})")

    retention_days = Config.get_retention_days()
    if retention_days is not None:
        removed = app.state.service.purge_expired(retention_days)
        logger.info(f"Retention: removed {removed} snapshots older than {retention_days} days")

    yield

    close = getattr(app.state.location_resolver, "close", None)
    if callable(close):
        close()
    logger.info("Pulse Metrics shutting down")


async def _render_error_handler(request: Request, exc: RenderError) -> JSONResponse:  # noqa: ARG001
    return JSONResponse(status_code=500, content={"detail": f"Chart rendering failed: {exc}"})


async def _input_error_handler(request: Request, exc: InputError) -> JSONResponse:  # noqa: ARG001
    logger.error(f"Stored snapshot data is invalid: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Stored snapshot data is invalid"})


def create_app(
    service: MetricsService | None = None,
    location_resolver: LocationResolver | None = None,
    cache: HourlyCache | None = None,
    throttle: ClientThrottle | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Factory function using the application factory pattern: every
    collaborator can be injected for tests, and defaults are built from
    Config otherwise.

    Args:
        service: MetricsService. Default: MetricsService() over the
            configured storage directory.
        location_resolver: Country lookup. Default: IpApiLocationResolver,
            or a StaticLocationResolver when PULSE_GEOLOCATION=false.
        cache: Chart response cache. Default: HourlyCache().
        throttle: Submission throttle. Default: ClientThrottle().

    Returns:
        Configured FastAPI application with ingestion, chart and health
        routes, OpenAPI docs at /docs.

    Example:
        >>> from fastapi.testclient import TestClient
        >>> client = TestClient(create_app())
        >>> client.get("/health").json()["status"]
        'ok'
    """
    if location_resolver is None:
        if Config.is_geolocation_enabled():
            location_resolver = IpApiLocationResolver()
        else:
            location_resolver = StaticLocationResolver()

    app = FastAPI(
        title="Pulse Metrics",
        description="Server metrics collection with SVG chart rendering",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = service or MetricsService()
    app.state.location_resolver = location_resolver
    app.state.cache = cache or HourlyCache()
    app.state.throttle = throttle or ClientThrottle()

    app.add_exception_handler(RenderError, _render_error_handler)
    app.add_exception_handler(InputError, _input_error_handler)

    app.include_router(ingest_router)
    app.include_router(chart_router)

    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 8080,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    """
    Launch the Pulse Metrics HTTP service.

    Starts a uvicorn ASGI server hosting the FastAPI application. Blocks
    until the server is stopped (Ctrl+C).

    Args:
        host: Network interface to bind. '0.0.0.0' to accept remote servers.
        port: TCP port number. Default 8080.
        reload: Enable auto-reload on code changes for development.
        log_level: Uvicorn logging verbosity.

    Raises:
        OSError: If the port is already in use or host is invalid.
    """
    uvicorn.run(
        "pulse_metrics.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )
