"""
Pytest configuration and shared fixtures for Pulse Metrics tests.

This module contains:
- MockFileSystem: In-memory filesystem for testing without actual I/O
- make_snapshot: Snapshot factory with sensible defaults
- Shared fixtures available to all test modules
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from typing import Any

import pytest

from pulse_metrics.config import Config
from pulse_metrics.models import Snapshot

FIXED_NOW = datetime(2026, 3, 4, 10, 30, tzinfo=UTC)
"""Reference instant for clock-dependent tests: a Wednesday, 10:30 UTC."""


class MockFileSystem:
    """
    In-memory file system for testing.

    Simulates a file system using dictionaries:
    - _files: dict mapping path -> content (str)
    - _dirs: set of directory paths
    - _read_only: set of paths that refuse writes

    FEATURES:
    - No actual I/O operations
    - Fast test execution
    - Easy to inspect state
    - Supports write and read failure simulation
    """

    def __init__(self) -> None:
        """
        Initialize empty mock file system.

        Business context: Mock filesystem enables testing storage
        operations without actual disk I/O, making tests fast and
        deterministic.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.list_files()
            []
        """
        self._files: dict[str, str] = {}
        self._dirs: set[str] = set()
        self._read_only: set[str] = set()
        self.fail_reads = False
        self.fail_makedirs = False

    def is_dir(self, path: str) -> bool:
        """Check if path is a directory in the mock filesystem."""
        return path in self._dirs

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create mock directory and parent directories.

        Business context: The snapshot store creates its directory on
        startup. Mock enables testing that without touching disk.

        Args:
            path: Absolute path of directory to create.
            exist_ok: If True, don't raise if directory exists.

        Raises:
            OSError: If directory exists and exist_ok is False, if path
                is an existing file, or if fail_makedirs is set.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.makedirs('/data/metrics', exist_ok=True)
            >>> fs.is_dir('/data')
            True
        """
        if self.fail_makedirs:
            raise OSError(f"Permission denied: {path}")

        if path in self._dirs:
            if not exist_ok:
                raise OSError(f"Directory exists: {path}")
            return

        if path in self._files:
            raise OSError(f"Path is a file, not directory: {path}")

        # Create all parent directories
        parts = path.rstrip("/").split("/")
        for i in range(1, len(parts) + 1):
            parent = "/".join(parts[:i])
            if parent:
                self._dirs.add(parent)

    def read_text(self, path: str, _encoding: str = "utf-8") -> str:
        """
        Read mock file contents.

        Args:
            path: Absolute path to file to read.
            _encoding: Ignored (mock stores strings directly).

        Returns:
            File contents as stored in _files dict.

        Raises:
            FileNotFoundError: If path not in _files.
            OSError: If fail_reads is set.
        """
        if self.fail_reads:
            raise OSError(f"I/O error: {path}")
        if path not in self._files:
            raise FileNotFoundError(f"No such file: {path}")
        return self._files[path]

    def _check_writable(self, path: str) -> None:
        if path in self._read_only:
            raise PermissionError(f"Permission denied: {path}")
        parent = "/".join(path.rstrip("/").split("/")[:-1])
        if parent and parent not in self._dirs:
            self.makedirs(parent, exist_ok=True)

    def write_text(self, path: str, content: str, _encoding: str = "utf-8") -> None:
        """
        Write text to mock file, replacing existing content.

        Business context: Used by the retention purge to write the
        surviving snapshots before swapping them in.

        Raises:
            PermissionError: If path is in _read_only set.
        """
        self._check_writable(path)
        self._files[path] = content

    def append_text(self, path: str, content: str, _encoding: str = "utf-8") -> None:
        """
        Append text to mock file, creating it when missing.

        Business context: Every ingested snapshot is one appended line.

        Raises:
            PermissionError: If path is in _read_only set.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.append_text('/data/log.jsonl', 'a\\n')
            >>> fs.append_text('/data/log.jsonl', 'b\\n')
            >>> fs.get_file('/data/log.jsonl')
            'a\\nb\\n'
        """
        self._check_writable(path)
        self._files[path] = self._files.get(path, "") + content

    def rename(self, src: str, dst: str) -> None:
        """
        Rename/move a mock file, replacing the destination.

        Raises:
            FileNotFoundError: If source doesn't exist.
            PermissionError: If destination is read-only.
        """
        if src not in self._files:
            raise FileNotFoundError(f"No such file: {src}")
        if dst in self._read_only:
            raise PermissionError(f"Permission denied: {dst}")
        self._files[dst] = self._files.pop(src)

    # =========================================================================
    # TEST HELPERS
    # =========================================================================

    def get_file(self, path: str) -> str | None:
        """Get file content or None if not exists."""
        return self._files.get(path)

    def set_file(self, path: str, content: str) -> None:
        """
        Set file content directly for test setup.

        Bypasses read-only checks and creates parent directories.
        """
        parent = "/".join(path.rstrip("/").split("/")[:-1])
        if parent:
            self.makedirs(parent, exist_ok=True)
        self._files[path] = content

    def set_read_only(self, path: str) -> None:
        """Make writes to path raise PermissionError."""
        self._read_only.add(path)

    def list_files(self) -> list[str]:
        return sorted(self._files)

    def clear(self) -> None:
        """Reset the filesystem to its empty state."""
        self._files.clear()
        self._dirs.clear()
        self._read_only.clear()
        self.fail_reads = False
        self.fail_makedirs = False


def make_snapshot(created_at: datetime = FIXED_NOW, **overrides: Any) -> Snapshot:
    """
    Build a Snapshot with realistic defaults.

    Business context: Most tests only care about one or two attributes;
    the factory fills in the rest so assertions stay focused.

    Args:
        created_at: Creation instant. Default: FIXED_NOW.
        **overrides: Snapshot attributes to replace.

    Returns:
        Snapshot instance.

    Example:
        >>> make_snapshot(os_name="Windows").os_name
        'Windows'
    """
    fields: dict[str, Any] = {
        "server_core": "Paper",
        "server_version": "1.21.4",
        "os_name": "Linux",
        "os_version": "6.8",
        "os_architecture": "amd64",
        "runtime_version": "21",
        "cpu_cores": 4,
        "total_ram": 8 * 1024**3,
        "location": "Germany",
        "project_version": "1.4.0",
        "project_language": "en_us",
        "online_mode": "true",
        "proxy_mode": "None",
        "database_mode": "embedded",
        "player_count": 5,
        "modules": {"chat": "enabled", "spit": "disabled"},
    }
    fields.update(overrides)
    return Snapshot(created_at=created_at, **fields)


@pytest.fixture
def mock_fs() -> MockFileSystem:
    """
    Create a MockFileSystem for testing.

    Provides a fresh in-memory filesystem instance for each test,
    ensuring test isolation without actual disk I/O.

    Returns:
        MockFileSystem: A fresh mock filesystem instance.
    """
    return MockFileSystem()


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """
    Clock pinned to FIXED_NOW.

    Business context: Chart windows and cache keys derive from the
    current instant; a fixed clock makes them predictable.
    """
    return lambda: FIXED_NOW


@pytest.fixture(autouse=True)
def reset_config() -> Iterator[None]:
    """Clear Config test overrides after every test."""
    yield
    Config.reset_test_overrides()
