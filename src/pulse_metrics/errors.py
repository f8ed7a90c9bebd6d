"""
Exception types for Pulse Metrics.

PURPOSE: Small error taxonomy shared by the core and its collaborators.

ERROR CATEGORIES:
- InputError: malformed snapshot data reached the core. Validation belongs
  upstream (ingestion), so the core never tries to recover.
- RenderError: the drawing sink could not serialise a command sequence.
  Surfaced to HTTP callers as a server error, never retried.

Degenerate input (empty snapshot sets, zero denominators) is not an error;
aggregators and renderers return empty or default output for it.
"""

from __future__ import annotations

__all__ = ["PulseMetricsError", "InputError", "RenderError"]


class PulseMetricsError(Exception):
    """Base class for all Pulse Metrics errors."""


class InputError(PulseMetricsError, ValueError):
    """Snapshot data that cannot be interpreted, e.g. a non-numeric sort key."""


class RenderError(PulseMetricsError):
    """Drawing-command serialisation failed in the sink."""
