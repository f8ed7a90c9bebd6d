"""
Metrics Service - shared business logic for Pulse Metrics.

PURPOSE: Connect the snapshot store, the aggregator, the chart renderers
and the drawing sink behind one chart catalogue.
AI CONTEXT: This is the service layer used by both web/routes.py and cli.py.

ARCHITECTURE:
    HTTP routes ──┐
                  ├──► MetricsService ◄── SnapshotStore
    CLI commands ─┘          │
                             ├── Aggregator (grouping, sorting)
                             ├── chart renderers (drawing commands)
                             └── DrawingSink (SVG/PNG bytes)

CHART CATALOGUE:
Every chart is reachable by name (see CHART_NAMES). "activity" is the main
time-series chart; every other chart is a distribution over the snapshots
of the last Config.DISTRIBUTION_WINDOW_HOURS.

USAGE:
    service = MetricsService()
    svg = service.render_chart("operation-systems")
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import partial
from typing import Any

from .aggregator import (
    Aggregator,
    KeyFn,
    attribute_key,
    cpu_cores_key,
    ram_gigabytes,
    sort_by_numeric_key,
    sort_by_value,
    sort_by_version,
)
from .charts import (
    BarDistributionChart,
    CircleDistributionChart,
    ComparisonChart,
    StatusGridChart,
    TimeSeriesChart,
)
from .config import Config
from .drawing import DrawingCommand, DrawingSink
from .models import Snapshot, truncate_to_hour, utc_now
from .rendering import MatplotlibSink
from .sample_data import generate_sample_snapshots
from .storage import SnapshotStore

__all__ = [
    "CHART_NAMES",
    "MAIN_CHART",
    "ChartImage",
    "MetricsService",
    "ServiceResult",
]

logger = logging.getLogger(__name__)

MAIN_CHART = "activity"

CHART_NAMES: tuple[str, ...] = (
    MAIN_CHART,
    "server-versions",
    "ram-usage",
    "modules-status",
    "server-types",
    "online-mode",
    "project-versions",
    "project-languages",
    "proxy-modes",
    "database-modes",
    "server-locations",
    "java-versions",
    "core-counts",
    "system-archs",
    "operation-systems",
)

Clock = Callable[[], datetime]
Sorter = Callable[[Mapping[str, int]], dict[str, int]]


def _player_count(snapshot: Snapshot) -> int:
    return snapshot.player_count


def _one(_snapshot: Snapshot) -> int:
    return 1


@dataclass
class ServiceResult:
    """
    Result from a service operation.

    Provides a consistent return type for write operations with
    success/failure status and optional data or error message.

    Attributes:
        success: Whether the operation completed successfully.
        message: Human-readable result message.
        data: Optional dict with operation-specific data.
        error: Optional error message if success is False.
    """

    success: bool
    message: str
    data: dict[str, Any] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to a JSON-serializable dictionary.

        Fields with None/empty values (data, error) are omitted.

        Example:
            >>> ServiceResult(success=True, message="Saved").to_dict()
            {'success': True, 'message': 'Saved'}
        """
        result: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.data:
            result["data"] = self.data
        if self.error:
            result["error"] = self.error
        return result


@dataclass(frozen=True)
class ChartImage:
    """Drawing commands for one chart plus the canvas they target."""

    commands: list[DrawingCommand]
    width: int
    height: int


class MetricsService:
    """
    Chart catalogue and snapshot recording.

    Every chart build fetches its own snapshot slice from the store, so
    concurrent calls share nothing mutable apart from the store itself.

    OPERATIONS:
    - record_snapshot: persist one ingested snapshot
    - build_chart / render_chart: produce a named chart
    - purge_expired: apply the retention policy
    - seed_sample_data: write generated demo snapshots
    """

    def __init__(
        self,
        store: SnapshotStore | None = None,
        aggregator: Aggregator | None = None,
        sink: DrawingSink | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the service with its collaborators.

        Args:
            store: Snapshot store. Default: SnapshotStore() in the
                configured storage directory.
            aggregator: Grouping engine. Default: Aggregator().
            sink: Drawing sink. Default: MatplotlibSink("svg").
            clock: Returns the current UTC instant. Default: utc_now.
            rng: Random source for the circle packer's fallback placement.
        """
        self.store = store or SnapshotStore()
        self.aggregator = aggregator or Aggregator()
        self.sink: DrawingSink = sink or MatplotlibSink()
        self.clock: Clock = clock or utc_now
        self.rng = rng

        self._builders: dict[str, Callable[[], ChartImage]] = {
            MAIN_CHART: self._activity_chart,
            "server-versions": partial(self._bar_chart, attribute_key("server_version"), sort_by_version),
            "ram-usage": partial(self._bar_chart, ram_gigabytes, sort_by_numeric_key, " GB"),
            "modules-status": self._modules_chart,
            "server-types": self._server_types_chart,
            "online-mode": partial(self._bar_chart, attribute_key("online_mode"), sort_by_value),
            "project-versions": partial(self._bar_chart, attribute_key("project_version"), sort_by_version),
            "project-languages": partial(self._bar_chart, attribute_key("project_language"), sort_by_value),
            "proxy-modes": partial(self._bar_chart, attribute_key("proxy_mode"), sort_by_value),
            "database-modes": partial(self._bar_chart, attribute_key("database_mode"), sort_by_value),
            "server-locations": partial(self._circle_chart, attribute_key("location")),
            "java-versions": partial(self._bar_chart, attribute_key("runtime_version"), sort_by_version),
            "core-counts": partial(self._bar_chart, cpu_cores_key, sort_by_numeric_key, " cores"),
            "system-archs": partial(self._bar_chart, attribute_key("os_architecture"), sort_by_value),
            "operation-systems": partial(self._circle_chart, attribute_key("os_name")),
        }

    # =========================================================================
    # CHARTS
    # =========================================================================

    @property
    def chart_names(self) -> tuple[str, ...]:
        return tuple(self._builders)

    def build_chart(self, name: str) -> ChartImage:
        """
        Build the drawing commands for a named chart.

        Args:
            name: One of CHART_NAMES.

        Returns:
            ChartImage with commands and canvas size.

        Raises:
            KeyError: If the chart name is unknown.
            InputError: If stored snapshots break a numeric sort.
        """
        builder = self._builders.get(name)
        if builder is None:
            raise KeyError(name)
        return builder()

    def render_chart(self, name: str) -> bytes:
        """
        Build and serialise a named chart with the configured sink.

        Raises:
            KeyError: If the chart name is unknown.
            RenderError: If the sink fails.
        """
        image = self.build_chart(name)
        logger.debug(f"Rendering chart {name!r} with {len(image.commands)} commands")
        return self.sink.render(image.commands, image.width, image.height)

    def recent_snapshots(self) -> list[Snapshot]:
        """Snapshots inside the distribution window."""
        since = self.clock() - timedelta(hours=Config.DISTRIBUTION_WINDOW_HOURS)
        return self.store.query(since)

    def activity_buckets(self) -> list[datetime]:
        """
        Hour buckets of the activity chart, oldest first.

        Six complete UTC days plus every hour of today up to and including
        the current one: (days - 1) * 24 + current_hour + 1 buckets.
        """
        current_hour = truncate_to_hour(self.clock())
        count = (Config.TIME_SERIES_DAYS - 1) * 24 + current_hour.hour + 1
        return [current_hour - timedelta(hours=count - 1 - index) for index in range(count)]

    def _activity_chart(self) -> ChartImage:
        buckets = self.activity_buckets()
        snapshots = self.store.query(buckets[0] - timedelta(microseconds=1))

        players = self.aggregator.fill_buckets(
            self.aggregator.group_by_hour_bucket_sum(snapshots, _player_count), buckets
        )
        servers = self.aggregator.fill_buckets(
            self.aggregator.group_by_hour_bucket(snapshots), buckets
        )

        chart = TimeSeriesChart()
        commands = chart.render(
            self.aggregator.split_by_day(players),
            self.aggregator.split_by_day(servers),
            last_day_hours=buckets[-1].hour + 1,
        )
        return ChartImage(commands, chart.dimensions.width, chart.dimensions.height)

    def _bar_chart(self, key_fn: KeyFn, sorter: Sorter, suffix: str = "") -> ChartImage:
        data = sorter(self.aggregator.group_by_category(self.recent_snapshots(), key_fn))
        chart = BarDistributionChart(value_suffix=suffix)
        return ChartImage(chart.render(data), chart.dimensions.width, chart.dimensions.height)

    def _circle_chart(self, key_fn: KeyFn) -> ChartImage:
        data = sort_by_value(self.aggregator.group_by_category(self.recent_snapshots(), key_fn))
        chart = CircleDistributionChart(show_percentage=True, rng=self.rng)
        return ChartImage(chart.render(data), chart.dimensions.width, chart.dimensions.height)

    def _modules_chart(self) -> ChartImage:
        snapshots = self.recent_snapshots()
        counts = self.aggregator.count_enabled_flags(snapshots)
        chart = StatusGridChart()
        return ChartImage(
            chart.render(counts, len(snapshots)), chart.dimensions.width, chart.dimensions.height
        )

    def _server_types_chart(self) -> ChartImage:
        data = self.aggregator.group_by_category_pair(
            self.recent_snapshots(), attribute_key("server_core"), _player_count, _one
        )
        chart = ComparisonChart("Players", "Servers")
        return ChartImage(chart.render(data), chart.dimensions.width, chart.dimensions.height)

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    def record_snapshot(self, snapshot: Snapshot) -> ServiceResult:
        """
        Persist one ingested snapshot.

        Args:
            snapshot: Snapshot with its location already resolved.

        Returns:
            ServiceResult; success is False when the store write failed.
        """
        if not self.store.append(snapshot):
            return ServiceResult(
                success=False,
                message="Snapshot not saved",
                error="Snapshot storage is unavailable",
            )
        return ServiceResult(
            success=True,
            message="Saved",
            data={"createdAt": snapshot.created_at.isoformat()},
        )

    def purge_expired(self, days: int) -> int:
        """
        Delete snapshots older than `days` days.

        Args:
            days: Retention period, must be positive.

        Returns:
            Number of snapshots removed.

        Raises:
            ValueError: If days is not positive.
        """
        if days <= 0:
            raise ValueError(f"Retention days must be positive, got {days}")
        before = self.clock() - timedelta(days=days)
        return self.store.purge(before)

    def seed_sample_data(
        self, servers: int = 5, days: int = 10, rng: random.Random | None = None
    ) -> ServiceResult:
        """
        Write generated sample snapshots into the store.

        Business context: Lets developers look at populated charts without
        running real servers against the backend.

        Returns:
            ServiceResult with the number of snapshots written.
        """
        written = 0
        failed = 0
        for snapshot in generate_sample_snapshots(self.clock(), servers, days, rng):
            if self.store.append(snapshot):
                written += 1
            else:
                failed += 1

        if failed:
            return ServiceResult(
                success=False,
                message=f"Wrote {written} sample snapshots",
                data={"written": written, "failed": failed},
                error=f"{failed} snapshots could not be written",
            )
        logger.info(f"Seeded {written} sample snapshots")
        return ServiceResult(
            success=True,
            message=f"Wrote {written} sample snapshots",
            data={"written": written},
        )
