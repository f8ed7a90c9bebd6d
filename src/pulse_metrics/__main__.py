"""
Package entry point for python -m execution.

USAGE:
    python -m pulse_metrics                  # Run web service
    python -m pulse_metrics serve --port 80  # Run web service on port 80
    python -m pulse_metrics seed             # Write sample snapshots
    python -m pulse_metrics render ram-usage # Render one chart to stdout
"""

import sys

from pulse_metrics.cli import main

if __name__ == "__main__":
    sys.exit(main())
