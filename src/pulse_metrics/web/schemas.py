"""
Request schemas for the ingestion endpoint.

PURPOSE: Validate posted snapshots before they reach the core.
AI CONTEXT: Field aliases are the camelCase keys servers send; Python
names match Snapshot's attributes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models import Snapshot, parse_timestamp

__all__ = ["SnapshotPayload"]


def _as_text(value: Any) -> Any:
    # clients serialise booleans as JSON true/false for some string fields
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int | float):
        return str(value)
    return value


class SnapshotPayload(BaseModel):
    """Snapshot as posted by a server."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "serverCore": "Paper",
                "serverVersion": "1.21.4",
                "osName": "Linux",
                "osVersion": "6.8",
                "osArchitecture": "amd64",
                "javaVersion": "21",
                "cpuCores": 8,
                "totalRAM": 17179869184,
                "projectVersion": "1.4.0",
                "projectLanguage": "en_us",
                "onlineMode": "true",
                "proxyMode": "None",
                "databaseMode": "embedded",
                "playerCount": 12,
                "modules": {"chat": "enabled", "spit": "disabled"},
                "createdAt": "2026-01-02T03:04:05Z",
            }
        },
    )

    server_core: str | None = Field(None, alias="serverCore")
    server_version: str | None = Field(None, alias="serverVersion")
    os_name: str | None = Field(None, alias="osName")
    os_version: str | None = Field(None, alias="osVersion")
    os_architecture: str | None = Field(None, alias="osArchitecture")
    runtime_version: str | None = Field(None, alias="javaVersion")
    cpu_cores: int = Field(0, alias="cpuCores")
    total_ram: int = Field(0, alias="totalRAM")
    project_version: str | None = Field(None, alias="projectVersion")
    project_language: str | None = Field(None, alias="projectLanguage")
    online_mode: str | None = Field(None, alias="onlineMode")
    proxy_mode: str | None = Field(None, alias="proxyMode")
    database_mode: str | None = Field(None, alias="databaseMode")
    player_count: int = Field(0, alias="playerCount")
    modules: dict[str, str] = Field(default_factory=dict)
    created_at: datetime | None = Field(None, alias="createdAt")

    @field_validator(
        "server_core",
        "server_version",
        "os_name",
        "os_version",
        "os_architecture",
        "runtime_version",
        "project_version",
        "project_language",
        "online_mode",
        "proxy_mode",
        "database_mode",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("modules", mode="before")
    @classmethod
    def coerce_module_flags(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {key: _as_text(flag) for key, flag in value.items()}
        return value

    def to_snapshot(self, now: datetime, location: str | None = None) -> Snapshot:
        """
        Convert to a core Snapshot.

        Args:
            now: Creation time used when the client sent no createdAt.
            location: Resolved country of the submitting server.

        Returns:
            Immutable Snapshot with a UTC creation timestamp.
        """
        return Snapshot(
            created_at=parse_timestamp(self.created_at or now),
            server_core=self.server_core,
            server_version=self.server_version,
            os_name=self.os_name,
            os_version=self.os_version,
            os_architecture=self.os_architecture,
            runtime_version=self.runtime_version,
            cpu_cores=self.cpu_cores,
            total_ram=self.total_ram,
            location=location,
            project_version=self.project_version,
            project_language=self.project_language,
            online_mode=self.online_mode,
            proxy_mode=self.proxy_mode,
            database_mode=self.database_mode,
            player_count=self.player_count,
            modules=dict(self.modules),
        )
