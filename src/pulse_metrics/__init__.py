"""
Pulse Metrics backend.

PURPOSE: Collect periodic server snapshots and render aggregated SVG charts.
AI CONTEXT: This package holds the aggregation and chart rendering pipeline
plus the thin storage, web and CLI layers around it.

PACKAGE STRUCTURE:
- models.py: Snapshot record and UTC time-window helpers
- storage.py: JSON Lines snapshot store
- aggregator.py: Grouped counts, sums and time buckets
- packing.py: Non-overlapping circle layout
- drawing.py: Format-independent drawing commands
- charts/: The five chart renderers
- rendering.py: matplotlib sink turning commands into SVG/PNG bytes
- metrics_service.py: Chart catalogue and ingestion service
- web/: FastAPI application
- config.py: Configuration constants

QUICK START:
    # Run the web service
    python -m pulse_metrics serve

    # Render a chart from the local store
    python -m pulse_metrics render operation-systems --output os.svg
"""

from pulse_metrics.__version__ import (
    __author__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __url__,
    __version__,
    __version_date__,
)

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__url__",
    "__author__",
    "__license__",
    "__copyright__",
]
