"""
Aggregation engine for Pulse Metrics.

PURPOSE: Turn snapshot sequences into grouped statistics for the charts.
AI CONTEXT: Pure data processing - no visualization, no I/O.

STATISTIC FAMILIES:
1. Categorical: count / sum / pair-of-sums per category key
2. Temporal: count / sum per UTC hour or day bucket
3. Flags: enabled count per module name

GUARANTEES:
- Order-independent: the same multiset of snapshots yields the same mapping
- Every observed category key appears exactly once
- Integer arithmetic only, so sums are exact
- Empty input yields an empty mapping

Grouping itself is unordered; callers apply one of the sort helpers
(by key, by value, by version, by numeric key) before rendering.

USAGE:
    aggregator = Aggregator()
    by_os = aggregator.group_by_category(snapshots, attribute_key("os_name"))
    ordered = sort_by_value(by_os)
"""

from __future__ import annotations

import math
import re
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from .config import Config
from .errors import InputError
from .models import Snapshot, truncate_to_day, truncate_to_hour

__all__ = [
    "Aggregator",
    "UNKNOWN_CATEGORY",
    "attribute_key",
    "cpu_cores_key",
    "ram_gigabytes",
    "sort_by_key",
    "sort_by_numeric_key",
    "sort_by_value",
    "sort_by_version",
    "version_sort_key",
]

UNKNOWN_CATEGORY = "unknown"

KeyFn = Callable[[Snapshot], Any]
ValueFn = Callable[[Snapshot], int]

_BYTES_PER_GIGABYTE = 1024**3
_VERSION_TOKEN = re.compile(r"\d+|[A-Za-z]+")


def _category(value: Any) -> str:
    """Normalise a key-function result; None and "" share the unknown category."""
    if value is None:
        return UNKNOWN_CATEGORY
    text = str(value)
    return text if text else UNKNOWN_CATEGORY


# =============================================================================
# Key functions
# =============================================================================


def attribute_key(name: str) -> KeyFn:
    """
    Build a key function reading one Snapshot attribute.

    Args:
        name: Snapshot attribute name, e.g. "os_name".

    Returns:
        Callable returning that attribute of a snapshot.

    Example:
        >>> key = attribute_key("os_name")
        >>> key(snapshot)
        'Linux'
    """

    def key(snapshot: Snapshot) -> Any:
        return getattr(snapshot, name)

    key.__name__ = f"attribute_key_{name}"
    return key


def ram_gigabytes(snapshot: Snapshot) -> str:
    """Total RAM rounded up to whole gigabytes, as a category string."""
    return str(math.ceil(snapshot.total_ram / _BYTES_PER_GIGABYTE))


def cpu_cores_key(snapshot: Snapshot) -> str:
    """CPU core count as a category string."""
    return str(snapshot.cpu_cores)


# =============================================================================
# Sorting helpers
# =============================================================================


def version_sort_key(version: str) -> tuple[tuple[int, int, str], ...]:
    """
    Build a comparison key for version strings.

    Numeric parts compare numerically, alphabetic qualifiers compare
    case-insensitively and sort before the plain release
    ("1.0-SNAPSHOT" < "1.0" < "1.0.1"). Trailing zero parts are ignored,
    so "1.20" and "1.20.0" compare equal. Separators are irrelevant.

    Args:
        version: Version string such as "1.21.4", "17" or "1.8.0_392".

    Returns:
        Tuple usable as a sort key. Any string produces a key.

    Example:
        >>> sorted(["1.10", "1.9", "1.9-rc1"], key=version_sort_key)
        ['1.9-rc1', '1.9', '1.10']
    """
    items: list[tuple[int, int, str]] = []
    for token in _VERSION_TOKEN.findall(version):
        if token.isdigit():
            items.append((2, int(token), ""))
        else:
            items.append((0, 0, token.lower()))
    while items and items[-1] == (2, 0, ""):
        items.pop()
    items.append((1, 0, ""))
    return tuple(items)


def sort_by_key(grouped: Mapping[str, Any], reverse: bool = False) -> dict[str, Any]:
    """Order a grouped statistic alphabetically by category key."""
    return dict(sorted(grouped.items(), key=lambda item: item[0], reverse=reverse))


def sort_by_value(grouped: Mapping[str, int]) -> dict[str, int]:
    """
    Order a grouped statistic by value, largest first.

    The sort is stable: equal values keep the mapping's current order.
    """
    return dict(sorted(grouped.items(), key=lambda item: item[1], reverse=True))


def sort_by_version(grouped: Mapping[str, int]) -> dict[str, int]:
    """Order a grouped statistic by version key, newest first."""
    return dict(
        sorted(grouped.items(), key=lambda item: version_sort_key(item[0]), reverse=True)
    )


def sort_by_numeric_key(grouped: Mapping[str, int]) -> dict[str, int]:
    """
    Order a grouped statistic by integer key, largest first.

    Raises:
        InputError: If a key is not an integer string. Numeric charts
            (RAM, CPU cores) only ever produce integer keys from valid
            snapshots, so this signals bad upstream data.
    """
    try:
        return dict(sorted(grouped.items(), key=lambda item: int(item[0]), reverse=True))
    except ValueError as e:
        raise InputError(f"Non-numeric category key in numeric distribution: {e}") from e


# =============================================================================
# Aggregator
# =============================================================================


class Aggregator:
    """
    Calculator for grouped snapshot statistics.

    DESIGN:
    - Stateless: Each method operates on provided data
    - Pure: No side effects, only data transformation
    - Safe to share between request threads
    """

    def group_by_category(
        self, snapshots: Iterable[Snapshot], key_fn: KeyFn
    ) -> dict[str, int]:
        """
        Count snapshots per category.

        Args:
            snapshots: Snapshots to aggregate.
            key_fn: Maps a snapshot to its category. None or "" results
                land in UNKNOWN_CATEGORY rather than being dropped.

        Returns:
            Dict of category -> count. Values sum to the number of
            snapshots. Empty dict for empty input.

        Example:
            >>> aggregator.group_by_category(snaps, attribute_key("os_name"))
            {'Linux': 2, 'Windows': 1}
        """
        counts: dict[str, int] = defaultdict(int)
        for snapshot in snapshots:
            counts[_category(key_fn(snapshot))] += 1
        return dict(counts)

    def group_by_category_sum(
        self, snapshots: Iterable[Snapshot], key_fn: KeyFn, value_fn: ValueFn
    ) -> dict[str, int]:
        """
        Sum a numeric snapshot value per category.

        Returns:
            Dict of category -> sum of value_fn over that category.
        """
        sums: dict[str, int] = defaultdict(int)
        for snapshot in snapshots:
            sums[_category(key_fn(snapshot))] += int(value_fn(snapshot))
        return dict(sums)

    def group_by_category_pair(
        self,
        snapshots: Iterable[Snapshot],
        key_fn: KeyFn,
        first_fn: ValueFn,
        second_fn: ValueFn,
    ) -> dict[str, tuple[int, int]]:
        """
        Sum two numeric values per category.

        Business context: Feeds the comparison chart, e.g. players and
        servers per server core. Use `lambda s: 1` as a value function to
        count.

        Returns:
            Dict of category -> (sum of first_fn, sum of second_fn).
        """
        firsts: dict[str, int] = defaultdict(int)
        seconds: dict[str, int] = defaultdict(int)
        for snapshot in snapshots:
            category = _category(key_fn(snapshot))
            firsts[category] += int(first_fn(snapshot))
            seconds[category] += int(second_fn(snapshot))
        return {category: (firsts[category], seconds[category]) for category in firsts}

    def group_by_hour_bucket(self, snapshots: Iterable[Snapshot]) -> dict[datetime, int]:
        """
        Count snapshots per UTC hour.

        Returns:
            Dict of truncated hour instant -> count.
        """
        return self.group_by_hour_bucket_sum(snapshots, lambda _snapshot: 1)

    def group_by_hour_bucket_sum(
        self, snapshots: Iterable[Snapshot], value_fn: ValueFn
    ) -> dict[datetime, int]:
        """
        Sum a numeric snapshot value per UTC hour.

        Returns:
            Dict of truncated hour instant -> sum.
        """
        sums: dict[datetime, int] = defaultdict(int)
        for snapshot in snapshots:
            sums[truncate_to_hour(snapshot.created_at)] += int(value_fn(snapshot))
        return dict(sums)

    def group_by_day_bucket(self, snapshots: Iterable[Snapshot]) -> dict[datetime, int]:
        """Count snapshots per UTC day."""
        counts: dict[datetime, int] = defaultdict(int)
        for snapshot in snapshots:
            counts[truncate_to_day(snapshot.created_at)] += 1
        return dict(counts)

    def count_enabled_flags(self, snapshots: Iterable[Snapshot]) -> dict[str, int]:
        """
        Count, per module name, the snapshots reporting it enabled.

        A module counts as enabled when its flag is one of
        Config.ENABLED_FLAG_VALUES (case-insensitive). Modules only ever
        seen disabled still appear with 0.

        Returns:
            Dict of module name -> enabled count.
        """
        enabled: dict[str, int] = defaultdict(int)
        for snapshot in snapshots:
            for module, flag in snapshot.modules.items():
                is_enabled = str(flag).strip().lower() in Config.ENABLED_FLAG_VALUES
                enabled[_category(module)] += 1 if is_enabled else 0
        return dict(enabled)

    @staticmethod
    def fill_buckets(
        grouped: Mapping[datetime, int], buckets: Sequence[datetime]
    ) -> dict[datetime, int]:
        """
        Project a bucket mapping onto a declared bucket list.

        Declared buckets without snapshots get an explicit 0; buckets
        outside the declared list are dropped.

        Returns:
            Dict in the order of `buckets`.
        """
        return {bucket: grouped.get(bucket, 0) for bucket in buckets}

    @staticmethod
    def split_by_day(hourly: Mapping[datetime, int]) -> dict[datetime, dict[int, int]]:
        """
        Re-key hourly buckets as {day: {hour_of_day: value}}.

        Returns:
            Dict ordered by day, each inner dict keyed by UTC hour 0-23.
        """
        days: dict[datetime, dict[int, int]] = {}
        for hour in sorted(hourly):
            day = truncate_to_day(hour)
            days.setdefault(day, {})[truncate_to_hour(hour).hour] = hourly[hour]
        return days
