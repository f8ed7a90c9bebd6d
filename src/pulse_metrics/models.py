"""
Data models for Pulse Metrics.

PURPOSE: Type-safe dataclass for the reported server snapshot plus the
UTC time-window helpers all bucketing derives from.
AI CONTEXT: Snapshots are immutable once created; the core only reads them.

SERIALIZATION:
Snapshot.to_dict() produces the camelCase wire format shared by the
ingestion endpoint and the JSON Lines store; Snapshot.from_dict() reads it.
Timestamps use ISO 8601 with UTC offset.

USAGE:
    snapshot = Snapshot.from_dict(payload)
    hour = truncate_to_hour(snapshot.created_at)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from .errors import InputError

__all__ = [
    "Snapshot",
    "parse_timestamp",
    "truncate_to_hour",
    "truncate_to_day",
    "utc_now",
]


def utc_now() -> datetime:
    """Get the current instant as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def parse_timestamp(value: str | datetime) -> datetime:
    """
    Parse an ISO 8601 instant into an aware UTC datetime.

    Accepts a trailing 'Z', explicit offsets and naive values (taken as
    UTC). Already-parsed datetimes pass through, normalised to UTC.

    Args:
        value: ISO 8601 string or datetime.

    Returns:
        Timezone-aware datetime in UTC.

    Raises:
        InputError: If the string is not a valid ISO 8601 timestamp.

    Example:
        >>> parse_timestamp("2026-01-02T03:04:05Z").isoformat()
        '2026-01-02T03:04:05+00:00'
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError as e:
            raise InputError(f"Invalid timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def truncate_to_hour(timestamp: datetime) -> datetime:
    """
    Truncate an instant to the start of its UTC hour.

    The result is the identity of the hourly TimeWindow. Two instants in
    the same UTC hour collide regardless of their original offsets.

    Example:
        >>> truncate_to_hour(parse_timestamp("2026-01-02T03:59:59+02:00")).isoformat()
        '2026-01-02T01:00:00+00:00'
    """
    return parse_timestamp(timestamp).replace(minute=0, second=0, microsecond=0)


def truncate_to_day(timestamp: datetime) -> datetime:
    """Truncate an instant to the start of its UTC day."""
    return truncate_to_hour(timestamp).replace(hour=0)


def _as_int(payload: dict[str, Any], key: str) -> int:
    value = payload.get(key)
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InputError(f"Field {key!r} is not an integer: {value!r}") from e


def _as_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return None if value is None else str(value)


@dataclass(frozen=True)
class Snapshot:
    """
    One reported observation of a remote server.

    LIFECYCLE:
    1. Posted by a server to the ingestion endpoint
    2. Location filled in from the client address
    3. Appended to the snapshot store, never mutated afterwards

    The creation timestamp is the only temporal key: every time window is
    derived by truncating it in UTC.

    Optional text attributes are None when the client did not send them;
    the aggregator maps those to its "unknown" category.
    """

    created_at: datetime
    server_core: str | None = None
    server_version: str | None = None
    os_name: str | None = None
    os_version: str | None = None
    os_architecture: str | None = None
    runtime_version: str | None = None
    cpu_cores: int = 0
    total_ram: int = 0
    location: str | None = None
    project_version: str | None = None
    project_language: str | None = None
    online_mode: str | None = None
    proxy_mode: str | None = None
    database_mode: str | None = None
    player_count: int = 0
    modules: dict[str, str] = field(default_factory=dict)

    def with_location(self, location: str) -> Snapshot:
        """Return a copy of this snapshot with the location replaced."""
        return replace(self, location=location)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to the camelCase wire/storage format.

        Returns:
            JSON-serializable dict. createdAt is an ISO 8601 string.

        Example:
            >>> snap = Snapshot(created_at=parse_timestamp("2026-01-01T00:00:00Z"))
            >>> snap.to_dict()["createdAt"]
            '2026-01-01T00:00:00+00:00'
        """
        return {
            "serverCore": self.server_core,
            "serverVersion": self.server_version,
            "osName": self.os_name,
            "osVersion": self.os_version,
            "osArchitecture": self.os_architecture,
            "javaVersion": self.runtime_version,
            "cpuCores": self.cpu_cores,
            "totalRAM": self.total_ram,
            "location": self.location,
            "projectVersion": self.project_version,
            "projectLanguage": self.project_language,
            "onlineMode": self.online_mode,
            "proxyMode": self.proxy_mode,
            "databaseMode": self.database_mode,
            "playerCount": self.player_count,
            "modules": dict(self.modules),
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Snapshot:
        """
        Create a Snapshot from its camelCase dict form.

        Args:
            data: Dict as produced by to_dict() or posted by a client.
                createdAt is required; numeric fields default to 0 and
                text fields to None.

        Returns:
            Snapshot instance.

        Raises:
            InputError: If createdAt is missing or unparseable, a numeric
                field is not an integer, or modules is not a mapping.
        """
        created_at = data.get("createdAt")
        if created_at is None:
            raise InputError("Snapshot is missing createdAt")

        modules = data.get("modules") or {}
        if not isinstance(modules, dict):
            raise InputError(f"Field 'modules' is not a mapping: {modules!r}")

        return cls(
            created_at=parse_timestamp(created_at),
            server_core=_as_str(data, "serverCore"),
            server_version=_as_str(data, "serverVersion"),
            os_name=_as_str(data, "osName"),
            os_version=_as_str(data, "osVersion"),
            os_architecture=_as_str(data, "osArchitecture"),
            runtime_version=_as_str(data, "javaVersion"),
            cpu_cores=_as_int(data, "cpuCores"),
            total_ram=_as_int(data, "totalRAM"),
            location=_as_str(data, "location"),
            project_version=_as_str(data, "projectVersion"),
            project_language=_as_str(data, "projectLanguage"),
            online_mode=_as_str(data, "onlineMode"),
            proxy_mode=_as_str(data, "proxyMode"),
            database_mode=_as_str(data, "databaseMode"),
            player_count=_as_int(data, "playerCount"),
            modules={str(k): str(v) for k, v in modules.items()},
        )
