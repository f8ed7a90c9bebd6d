"""
HTTP surface for Pulse Metrics.

PURPOSE: FastAPI application exposing snapshot ingestion and chart routes.

FEATURES:
- Gzip-aware snapshot ingestion with per-client throttling
- Country lookup for submitting servers
- Chart routes memoised per route and UTC hour

USAGE:
    # Via CLI
    pulse-metrics serve

    # Programmatically
    from pulse_metrics.web import create_app
    app = create_app()
"""

from .app import create_app, run_server

__all__ = ["create_app", "run_server"]
