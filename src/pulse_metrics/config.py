"""
Configuration for Pulse Metrics.

PURPOSE: Centralized configuration constants and runtime settings.
AI CONTEXT: All configurable values live here - modify this file to change behavior.

CONFIGURATION CATEGORIES:
- Storage: File paths for the snapshot log
- Canvas: Chart sizes and margins
- Windows: How far back each chart family looks
- Caching & Throttling: Bounds for the web layer memoisation
- Geolocation: Country lookup for submitting servers

ENVIRONMENT VARIABLES:
- PULSE_STORAGE_DIR: Directory holding snapshots.jsonl (default: .pulse_metrics)
- PULSE_RETENTION_DAYS: Keep snapshots this many days (default: keep forever)
- PULSE_GEOLOCATION: "false" to disable the IP-to-country lookup

USAGE:
    from pulse_metrics.config import Config
    storage_dir = Config.get_storage_dir()
    width = Config.CANVAS_WIDTH
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import ClassVar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration container for Pulse Metrics.

    DESIGN: Frozen dataclass ensures configuration immutability at runtime.
    All values are class-level constants - no instance creation needed.

    STORAGE STRUCTURE:
        .pulse_metrics/
        └── snapshots.jsonl   # One snapshot per line, append-only
    """

    # =========================================================================
    # STORAGE CONFIGURATION
    # =========================================================================
    STORAGE_DIR: ClassVar[str] = ".pulse_metrics"
    SNAPSHOTS_FILE: ClassVar[str] = "snapshots.jsonl"

    # =========================================================================
    # CANVAS CONFIGURATION
    # =========================================================================
    CANVAS_WIDTH: ClassVar[int] = 1200
    CANVAS_HEIGHT: ClassVar[int] = 600
    CANVAS_MARGIN: ClassVar[int] = 80

    STATUS_CANVAS_WIDTH: ClassVar[int] = 2400
    STATUS_CANVAS_HEIGHT: ClassVar[int] = 1500
    """The module grid lists every module, so it gets a larger canvas."""

    # =========================================================================
    # AGGREGATION WINDOWS
    # =========================================================================
    DISTRIBUTION_WINDOW_HOURS: ClassVar[int] = 1
    """Distribution charts only consider the last hour of reports."""

    TIME_SERIES_DAYS: ClassVar[int] = 7
    """Six complete UTC days plus the current, partial day."""

    # =========================================================================
    # WEB LAYER
    # =========================================================================
    CHART_CACHE_MAX_ENTRIES: ClassVar[int] = 100
    THROTTLE_WINDOW_SECONDS: ClassVar[int] = 3000
    THROTTLE_MAX_ENTRIES: ClassVar[int] = 1000
    SVG_MEDIA_TYPE: ClassVar[str] = "image/svg+xml"

    # =========================================================================
    # GEOLOCATION
    # =========================================================================
    GEOLOCATION_URL: ClassVar[str] = "http://ip-api.com/line/{ip}?fields=country"
    GEOLOCATION_TIMEOUT_SECONDS: ClassVar[float] = 3.0
    UNKNOWN_LOCATION: ClassVar[str] = "Unknown"

    # =========================================================================
    # MODULE FLAGS
    # =========================================================================
    ENABLED_FLAG_VALUES: ClassVar[frozenset[str]] = frozenset({"enabled", "true"})
    """Module flag values counted as enabled. "true" is the legacy client value."""

    # =========================================================================
    # ENVIRONMENT-BASED SETTINGS (runtime configurable)
    # =========================================================================
    _storage_dir_override: ClassVar[str | None] = None
    _retention_days_override: ClassVar[int | None] = None
    _geolocation_override: ClassVar[bool | None] = None

    @classmethod
    def get_storage_dir(cls) -> str:
        """
        Get the directory holding the snapshot log.

        Uses a priority system: test overrides first, then the
        PULSE_STORAGE_DIR environment variable, then STORAGE_DIR.

        Returns:
            Directory path string (relative paths resolve against the cwd).

        Example:
            >>> Config.get_storage_dir()
            '.pulse_metrics'
        """
        if cls._storage_dir_override is not None:
            return cls._storage_dir_override
        return os.environ.get("PULSE_STORAGE_DIR", cls.STORAGE_DIR)

    @classmethod
    def get_retention_days(cls) -> int | None:
        """
        Get the snapshot retention period in days.

        Retention is opt-in: without PULSE_RETENTION_DAYS snapshots are
        kept indefinitely. Non-numeric or non-positive values are logged
        and treated as unset.

        Business context: The snapshot log grows by one line per server
        per report. Operators decide how much history the charts need;
        the backend never guesses.

        Returns:
            Positive number of days, or None when retention is disabled.

        Example:
            >>> # With env var: PULSE_RETENTION_DAYS=30
            >>> Config.get_retention_days()
            30
        """
        if cls._retention_days_override is not None:
            return cls._retention_days_override
        raw = os.environ.get("PULSE_RETENTION_DAYS", "").strip()
        if not raw:
            return None
        try:
            days = int(raw)
        except ValueError:
            logger.warning(f"Ignoring non-numeric PULSE_RETENTION_DAYS={raw!r}")
            return None
        if days <= 0:
            logger.warning(f"Ignoring non-positive PULSE_RETENTION_DAYS={raw!r}")
            return None
        return days

    @classmethod
    def is_geolocation_enabled(cls) -> bool:
        """
        Check whether submitting servers are geolocated by IP.

        Enabled unless PULSE_GEOLOCATION is "false". Test overrides win.

        Returns:
            True if the country lookup should run on ingestion.
        """
        if cls._geolocation_override is not None:
            return cls._geolocation_override
        return os.environ.get("PULSE_GEOLOCATION", "").lower() != "false"

    @classmethod
    def set_test_overrides(
        cls,
        storage_dir: str | None = None,
        retention_days: int | None = None,
        geolocation: bool | None = None,
    ) -> None:
        """
        Set test overrides for environment-based settings.

        Allows tests to control settings without modifying environment
        variables. Must call reset_test_overrides() in test teardown to
        avoid affecting other tests.

        Args:
            storage_dir: Override for the storage directory. None to clear.
            retention_days: Override for retention days. None to clear.
            geolocation: Override for the geolocation flag. None to clear.

        Example:
            >>> Config.set_test_overrides(retention_days=7)
            >>> Config.get_retention_days()
            7
            >>> Config.reset_test_overrides()  # Clean up
        """
        cls._storage_dir_override = storage_dir
        cls._retention_days_override = retention_days
        cls._geolocation_override = geolocation

    @classmethod
    def reset_test_overrides(cls) -> None:
        """Reset all test overrides so environment variables apply again."""
        cls._storage_dir_override = None
        cls._retention_days_override = None
        cls._geolocation_override = None
