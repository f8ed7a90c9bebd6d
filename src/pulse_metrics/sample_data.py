"""
Sample snapshot generator.

PURPOSE: Fill an empty store with plausible data so every chart has
something to show during development and demos.
AI CONTEXT: Used by `pulse-metrics seed`. Never called by the web service.

SHAPE:
One snapshot per simulated server per hour over the requested number of
days, ending one hour after `now - days`. Attributes that identify a
server (OS, architecture, location, version line) depend on the server
index so distributions have stable, distinct categories; the rest is
random per snapshot.
"""

from __future__ import annotations

import random
from collections.abc import Iterator
from datetime import datetime, timedelta

from .models import Snapshot

__all__ = ["generate_sample_snapshots"]

SERVER_CORES = (
    "Paper", "Spigot", "Purpur", "Fabric", "Forge", "Folia", "Bukkit", "Sponge", "Leaves", "Leaf",
)
OPERATING_SYSTEMS = ("Linux", "Windows", "macOS")
LOCATIONS = ("Russia", "USA", "Germany", "Japan", "Brazil")
JAVA_VERSIONS = ("8", "11", "17", "21")
PROXY_MODES = ("BungeeCord", "Velocity", "Waterfall", "None")
DATABASE_MODES = ("remote", "embedded", "cloud")
PROJECT_LANGUAGES = ("Java", "Kotlin", "Groovy")
OS_VERSIONS = ("10", "11", "22.04", "2022")

_BYTES_PER_GIGABYTE = 1024**3


def _modules(rng: random.Random) -> dict[str, str]:
    def flag() -> str:
        return "enabled" if rng.random() < 0.5 else "disabled"

    return {"core": "enabled", "spit": "disabled", "chat": flag(), "anti-cheat": flag()}


def _snapshot(server: int, created_at: datetime, rng: random.Random) -> Snapshot:
    return Snapshot(
        created_at=created_at,
        server_core=rng.choice(SERVER_CORES),
        server_version=f"1.{20 - server}.{rng.randint(1, 4)}",
        os_name=OPERATING_SYSTEMS[server % len(OPERATING_SYSTEMS)],
        os_version=rng.choice(OS_VERSIONS),
        os_architecture="amd64" if server % 2 == 0 else "arm64",
        runtime_version=rng.choice(JAVA_VERSIONS),
        cpu_cores=rng.randint(1, 16),
        total_ram=rng.randint(1, 64) * _BYTES_PER_GIGABYTE,
        location=LOCATIONS[server % len(LOCATIONS)],
        project_version=f"1.{rng.randint(0, 4)}.0",
        project_language=rng.choice(PROJECT_LANGUAGES),
        online_mode=str(rng.random() < 0.5).lower(),
        proxy_mode=rng.choice(PROXY_MODES),
        database_mode=rng.choice(DATABASE_MODES),
        player_count=rng.randint(0, 10),
        modules=_modules(rng),
    )


def generate_sample_snapshots(
    now: datetime,
    servers: int = 5,
    days: int = 10,
    rng: random.Random | None = None,
) -> Iterator[Snapshot]:
    """
    Yield randomised snapshots covering the last `days` days.

    Args:
        now: Reference instant; the last snapshot is at or before it.
        servers: Number of simulated servers.
        days: Number of days of hourly reports per server.
        rng: Random source; pass a seeded Random for reproducible data.

    Yields:
        servers * days * 24 snapshots, server by server, oldest first.

    Example:
        >>> snaps = list(generate_sample_snapshots(utc_now(), servers=2, days=1))
        >>> len(snaps)
        48
    """
    rng = rng or random.Random()
    start = now - timedelta(days=days) + timedelta(hours=1)
    for server in range(servers):
        for hour in range(days * 24):
            yield _snapshot(server, start + timedelta(hours=hour), rng)
