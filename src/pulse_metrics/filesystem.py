"""
FileSystem abstraction for Pulse Metrics.

PURPOSE: Injectable file system interface for testability.
AI CONTEXT: Allows mocking file operations in unit tests without temp directories.

DESIGN:
- Protocol defines the interface
- RealFileSystem uses actual os operations
- MockFileSystem in tests/conftest.py stores data in memory for tests

USAGE:
    # Production
    fs = RealFileSystem()
    store = SnapshotStore(filesystem=fs)

    # Tests (MockFileSystem from conftest.py)
    store = SnapshotStore(filesystem=mock_fs)  # pytest fixture
"""

from __future__ import annotations

import os
from typing import Protocol

__all__ = ["FileSystem", "RealFileSystem"]


class FileSystem(Protocol):
    """
    Protocol for file system operations.

    Defines the interface for file system operations used by the snapshot
    store. All paths are strings. Implementations include RealFileSystem
    for production and MockFileSystem for testing.
    """

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create directory and all parent directories.

        Args:
            path: Path of directory to create.
            exist_ok: If True, don't raise if directory exists.

        Raises:
            OSError: If the directory exists and exist_ok is False.
        """
        ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """
        Read file contents as text.

        Raises:
            FileNotFoundError: If file doesn't exist.
        """
        ...

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """
        Write text content to file, replacing existing content.

        Raises:
            OSError: If the file cannot be written.
        """
        ...

    def append_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """
        Append text content to file, creating it if missing.

        Business context: The snapshot log is append-only; every ingested
        snapshot is one appended line.

        Raises:
            OSError: If the file cannot be written.
        """
        ...

    def rename(self, src: str, dst: str) -> None:
        """
        Rename a file, replacing the destination if it exists.

        Business context: Retention purges write the surviving snapshots to
        a temporary file and swap it in with a single rename.

        Raises:
            FileNotFoundError: If source doesn't exist.
        """
        ...


class RealFileSystem:
    """
    Real file system implementation using os.

    This is the production implementation that performs actual I/O.
    Each method delegates directly to the corresponding os or built-in
    function.
    """

    def makedirs(self, path: str, exist_ok: bool = False) -> None:  # pragma: no cover
        """Create directory tree on disk via os.makedirs()."""
        os.makedirs(path, exist_ok=exist_ok)

    def read_text(self, path: str, encoding: str = "utf-8") -> str:  # pragma: no cover
        """Read a whole file from disk as text."""
        with open(path, encoding=encoding) as f:
            return f.read()

    def write_text(
        self, path: str, content: str, encoding: str = "utf-8"
    ) -> None:  # pragma: no cover
        """Write text to disk, overwriting existing content."""
        with open(path, "w", encoding=encoding) as f:
            f.write(content)

    def append_text(
        self, path: str, content: str, encoding: str = "utf-8"
    ) -> None:  # pragma: no cover
        """Append text to a file on disk, creating it when missing."""
        with open(path, "a", encoding=encoding) as f:
            f.write(content)

    def rename(self, src: str, dst: str) -> None:  # pragma: no cover
        """
        Atomically replace dst with src.

        Uses os.replace() so the swap also works on Windows when the
        destination already exists.
        """
        os.replace(src, dst)
