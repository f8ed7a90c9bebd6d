"""
CLI entry point for Pulse Metrics.

PURPOSE: Command-line interface for running the service and maintaining
the snapshot store.
AI CONTEXT: Main entry points for package execution.

USAGE:
    # Run the HTTP service (default)
    python -m pulse_metrics

    # Or via CLI command (after install)
    pulse-metrics

    # Run with subcommands
    pulse-metrics serve --port 8080           # Start the HTTP service
    pulse-metrics seed --servers 5 --days 10  # Write sample snapshots
    pulse-metrics purge --days 30             # Apply retention once
    pulse-metrics render activity -o out.svg  # Render one chart to a file
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from collections.abc import Sequence
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .metrics_service import MetricsService

# Constants
PROG_NAME = "pulse-metrics"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
IMAGE_FORMATS = ("svg", "png")


@lru_cache(maxsize=1)
def _get_logger() -> logging.Logger:
    """Get module logger (cached for thread safety)."""
    logging.basicConfig(level=logging.INFO)
    return logging.getLogger(__name__)


def _log(message: str, *, emoji: str = "") -> None:
    """Log message with optional emoji prefix for CLI output.

    Args:
        message: The message to log.
        emoji: Optional emoji prefix for visual CLI feedback.
    """
    prefix = f"{emoji} " if emoji else ""
    _get_logger().info(f"{prefix}{message}")


def run_serve(
    host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, reload: bool = False
) -> None:
    """
    Run the HTTP service.

    Starts uvicorn with the FastAPI application. Blocks until the server
    is stopped (Ctrl+C).

    Args:
        host: Network interface to bind to. Use '0.0.0.0' so remote
            servers can post snapshots.
        port: TCP port for the HTTP server.
        reload: Restart on code changes (development only).

    Raises:
        OSError: If port is already in use.
    """
    from .web import run_server

    _log(f"Starting Pulse Metrics at http://{host}:{port}", emoji="🚀")
    _log("Press Ctrl+C to stop")
    run_server(host=host, port=port, reload=reload)


def run_seed(
    servers: int = 5,
    days: int = 10,
    seed: int | None = None,
    service: MetricsService | None = None,
) -> int:
    """
    Write randomised sample snapshots to the store.

    One snapshot per simulated server per hour over `days` days.

    Args:
        servers: Number of simulated servers.
        days: Days of history to generate.
        seed: Random seed for reproducible data.
        service: Optional MetricsService for testability.

    Returns:
        Exit code: 0 on success, 1 if any snapshot failed to write.
    """
    from .metrics_service import MetricsService as Service

    service = service or Service()
    result = service.seed_sample_data(servers=servers, days=days, rng=random.Random(seed))
    if not result.success:
        _log(f"{result.message}; {result.error}", emoji="⚠️")
        return 1
    _log(result.message, emoji="🌱")
    return 0


def run_purge(days: int, service: MetricsService | None = None) -> int:
    """
    Remove snapshots older than `days` days.

    Args:
        days: Retention period in days, must be positive.
        service: Optional MetricsService for testability.

    Returns:
        Exit code: 0 on success, 2 for a non-positive day count.
    """
    from .metrics_service import MetricsService as Service

    if days <= 0:
        _log(f"--days must be positive, got {days}", emoji="❌")
        return 2

    service = service or Service()
    removed = service.purge_expired(days)
    _log(f"Removed {removed} snapshots older than {days} days", emoji="🧹")
    return 0


def run_render(
    chart: str,
    output: str | None = None,
    image_format: str = "svg",
    service: MetricsService | None = None,
) -> int:
    """
    Render one chart from the local store.

    Args:
        chart: Chart name, e.g. "activity" or "operation-systems".
        output: File path to write; stdout when omitted.
        image_format: "svg" or "png".
        service: Optional MetricsService for testability.

    Returns:
        Exit code: 0 on success, 2 for an unknown chart name.

    Raises:
        RenderError: If the chart could not be serialised.
    """
    from .metrics_service import MetricsService as Service
    from .rendering import MatplotlibSink

    service = service or Service(sink=MatplotlibSink(image_format))
    if chart not in service.chart_names:
        _log(f"Unknown chart {chart!r}. Available: {', '.join(service.chart_names)}", emoji="❌")
        return 2

    content = service.render_chart(chart)
    if output is None:
        sys.stdout.buffer.write(content)
        sys.stdout.buffer.flush()
    else:
        with open(output, "wb") as f:
            f.write(content)
        _log(f"Wrote {chart} chart to {output}", emoji="📊")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main CLI entry point for Pulse Metrics.

    Parses command-line arguments and dispatches to the appropriate
    subcommand handler. Without a subcommand the HTTP service starts.

    Subcommands:
    - serve [--host HOST] [--port PORT] [--reload]: Run the HTTP service
    - seed [--servers N] [--days N] [--seed S]: Write sample snapshots
    - purge --days N: Remove snapshots older than N days
    - render CHART [--output PATH] [--format svg|png]: Render one chart

    Args:
        argv: Arguments without the program name. Default: sys.argv[1:].

    Returns:
        Process exit code.

    Raises:
        SystemExit: On --help, --version or argument parsing errors.

    Example:
        >>> # From command line:
        >>> # pulse-metrics render server-types --output types.svg
        >>> sys.exit(main())  # Typical usage pattern
    """
    from .__version__ import __version__
    from .metrics_service import CHART_NAMES

    parser = argparse.ArgumentParser(
        prog=PROG_NAME,
        description="Pulse Metrics - server metrics collection with SVG charts",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service")
    serve_parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Bind address (default: {DEFAULT_HOST})",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port number (default: {DEFAULT_PORT})",
    )
    serve_parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (development)",
    )

    # Seed command
    seed_parser = subparsers.add_parser("seed", help="Write randomised sample snapshots")
    seed_parser.add_argument("--servers", type=int, default=5, help="Simulated servers (default: 5)")
    seed_parser.add_argument("--days", type=int, default=10, help="Days of history (default: 10)")
    seed_parser.add_argument("--seed", type=int, default=None, help="Random seed")

    # Purge command
    purge_parser = subparsers.add_parser("purge", help="Remove snapshots older than N days")
    purge_parser.add_argument("--days", type=int, required=True, help="Retention period in days")

    # Render command
    render_parser = subparsers.add_parser("render", help="Render one chart to a file or stdout")
    render_parser.add_argument("chart", choices=CHART_NAMES, help="Chart name")
    render_parser.add_argument("--output", "-o", default=None, help="Output path (default: stdout)")
    render_parser.add_argument(
        "--format",
        dest="image_format",
        choices=IMAGE_FORMATS,
        default="svg",
        help="Image format (default: svg)",
    )

    args = parser.parse_args(argv)

    if args.command == "seed":
        return run_seed(servers=args.servers, days=args.days, seed=args.seed)
    if args.command == "purge":
        return run_purge(days=args.days)
    if args.command == "render":
        return run_render(args.chart, output=args.output, image_format=args.image_format)
    if args.command == "serve":
        run_serve(host=args.host, port=args.port, reload=args.reload)
    else:
        # Default: run the service with default settings
        run_serve()

    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
