"""Version information for pulse-metrics."""

__version__ = "1.0.0"
__version_date__ = "2026-10-19"

__title__ = "pulse_metrics"
__description__ = "Metrics collection backend that renders aggregated server snapshots as SVG charts"
__url__ = "https://github.com/flectone/pulse-metrics"

__author__ = "Flectone"

__license__ = "MIT"
__copyright__ = "Copyright 2026 Flectone"

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
