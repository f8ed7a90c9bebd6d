"""
FastAPI routes for Pulse Metrics.

PURPOSE: Thin route handlers that delegate to MetricsService.
AI CONTEXT: Routes should be simple - business logic lives in the service.

ROUTE STRUCTURE:
- POST /api/pulse/metrics : ingest one snapshot (gzip bodies accepted)
- GET /api/pulse/metrics/svg : main activity chart
- GET /api/pulse/metrics/svg/{chart} : any chart of the catalogue
- GET /health : liveness and snapshot count

Chart handlers are plain `def` functions, so FastAPI runs them on its
worker thread pool and slow renders don't block the event loop.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from ..__version__ import __version__
from ..config import Config
from ..metrics_service import MAIN_CHART, MetricsService
from .caching import ClientThrottle, HourlyCache
from .compression import GzipRoute
from .geolocation import LocationResolver, get_client_ip
from .schemas import SnapshotPayload

__all__ = [
    "chart_router",
    "ingest_router",
    "get_cache",
    "get_location_resolver",
    "get_service",
    "get_throttle",
]

logger = logging.getLogger(__name__)

ingest_router = APIRouter(prefix="/api/pulse/metrics", route_class=GzipRoute)
chart_router = APIRouter()


# =============================================================================
# Dependencies
# =============================================================================


def get_service(request: Request) -> MetricsService:
    """
    Get the application's MetricsService.

    Business context: One service instance per app, created by
    create_app(), so every request shares the same store and lock.
    """
    return request.app.state.service


def get_location_resolver(request: Request) -> LocationResolver:
    return request.app.state.location_resolver


def get_cache(request: Request) -> HourlyCache:
    return request.app.state.cache


def get_throttle(request: Request) -> ClientThrottle:
    return request.app.state.throttle


ServiceDep = Annotated[MetricsService, Depends(get_service)]
CacheDep = Annotated[HourlyCache, Depends(get_cache)]


# =============================================================================
# Ingestion
# =============================================================================


@ingest_router.post("")
def save_metrics(
    payload: SnapshotPayload,
    request: Request,
    service: ServiceDep,
    resolver: Annotated[LocationResolver, Depends(get_location_resolver)],
    throttle: Annotated[ClientThrottle, Depends(get_throttle)],
) -> dict[str, Any]:
    """
    Store one snapshot posted by a server.

    The client address is throttled to one accepted submission per
    window; the country is resolved from the same address.

    Returns:
        ServiceResult dict, e.g. {"success": true, "message": "Saved", ...}

    Raises:
        HTTPException: 429 with Retry-After when the client is throttled,
            503 when the snapshot could not be written.
    """
    client = get_client_ip(request)
    retry_after = throttle.try_acquire(client)
    if retry_after:
        logger.info(f"Throttled snapshot from {client} (retry in {retry_after}s)")
        raise HTTPException(
            status_code=429,
            detail="Snapshot already received from this client recently",
            headers={"Retry-After": str(retry_after)},
        )

    location = resolver.resolve(client)
    result = service.record_snapshot(payload.to_snapshot(service.clock(), location))
    if not result.success:
        throttle.release(client)
        raise HTTPException(status_code=503, detail=result.error or result.message)

    return result.to_dict()


# =============================================================================
# Charts
# =============================================================================


def _chart_response(service: MetricsService, cache: HourlyCache, chart: str) -> Response:
    if chart not in service.chart_names:
        raise HTTPException(status_code=404, detail=f"Unknown chart: {chart}")
    content = cache.get_or_compute(f"/svg/{chart}", lambda: service.render_chart(chart))
    return Response(content=content, media_type=Config.SVG_MEDIA_TYPE)


@chart_router.get("/api/pulse/metrics/svg")
def main_chart(service: ServiceDep, cache: CacheDep) -> Response:
    """Serve the main activity chart (players and servers per hour)."""
    return _chart_response(service, cache, MAIN_CHART)


@chart_router.get("/api/pulse/metrics/svg/{chart}")
def named_chart(chart: str, service: ServiceDep, cache: CacheDep) -> Response:
    """
    Serve any chart of the catalogue by name.

    Raises:
        HTTPException: 404 for names outside MetricsService.chart_names.
    """
    return _chart_response(service, cache, chart)


@chart_router.get("/health")
def health(service: ServiceDep) -> dict[str, Any]:
    """Liveness probe with the number of stored snapshots."""
    return {"status": "ok", "version": __version__, "snapshots": service.store.count()}
