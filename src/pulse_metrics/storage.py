"""
Snapshot storage for Pulse Metrics.

PURPOSE: Durable, append-only snapshot log with a lower-time-bound query.
AI CONTEXT: All persistence operations go through this module.

STORAGE STRUCTURE:
    .pulse_metrics/
    └── snapshots.jsonl   # One JSON object per line, camelCase keys

ERROR HANDLING STRATEGY:
- File not found: Return empty results
- Corrupt line: Log warning, skip that line, keep the rest
- Write failure: Log error, report False, don't crash server
- Server continues in degraded mode if storage fails

USAGE:
    # Production
    store = SnapshotStore()

    # Testing with MockFileSystem
    from conftest import MockFileSystem
    store = SnapshotStore(storage_dir="/test", filesystem=MockFileSystem())
"""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime
from typing import TYPE_CHECKING

from .config import Config
from .errors import InputError
from .filesystem import RealFileSystem
from .models import Snapshot, parse_timestamp

if TYPE_CHECKING:
    from .filesystem import FileSystem

__all__ = ["SnapshotStore"]

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    JSON Lines snapshot log with fail-safe error handling.

    DESIGN PRINCIPLES:
    1. Fail-safe: Never crash server on I/O errors
    2. Append-only: Snapshots are never updated in place
    3. Idempotent: Safe to initialize multiple times
    4. Testable: FileSystem can be injected for mocking

    THREAD SAFETY:
    Writes (append, purge) are serialised with a lock, so one store
    instance can be shared by request-handling threads. Reads see either
    the file before or after a purge swap.
    """

    def __init__(
        self,
        storage_dir: str | None = None,
        filesystem: FileSystem | None = None,
    ) -> None:
        """
        Initialize storage with directory structure.

        Args:
            storage_dir: Custom storage path. Default: Config.get_storage_dir()
            filesystem: FileSystem implementation. Default: RealFileSystem
        """
        self.storage_dir = storage_dir or Config.get_storage_dir()
        self._fs: FileSystem = filesystem or RealFileSystem()
        self.snapshots_file = os.path.join(self.storage_dir, Config.SNAPSHOTS_FILE)
        self._lock = threading.Lock()

        self._initialize_storage()

    def _initialize_storage(self) -> None:
        """
        Create the storage directory.

        ERROR HANDLING:
        Logs errors but doesn't raise - allows degraded operation.
        """
        try:
            self._fs.makedirs(self.storage_dir, exist_ok=True)
            logger.info(f"Storage initialized: {self.storage_dir}")
        except OSError as e:
            logger.error(f"Failed to initialize storage: {e}")

    def _read_lines(self) -> list[str]:
        try:
            content = self._fs.read_text(self.snapshots_file)
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error(f"Error reading {self.snapshots_file}: {e}")
            return []
        return [line for line in content.splitlines() if line.strip()]

    def _load_all(self) -> list[Snapshot]:
        """
        Parse every line of the snapshot log.

        Returns:
            Snapshots in file order. Corrupt lines are skipped with a warning.
        """
        snapshots: list[Snapshot] = []
        for number, line in enumerate(self._read_lines(), start=1):
            try:
                snapshots.append(Snapshot.from_dict(json.loads(line)))
            except (json.JSONDecodeError, InputError, AttributeError) as e:
                logger.warning(f"Skipping corrupt snapshot at {self.snapshots_file}:{number}: {e}")
        return snapshots

    # =========================================================================
    # SNAPSHOT OPERATIONS
    # =========================================================================

    def append(self, snapshot: Snapshot) -> bool:
        """
        Append one snapshot to the log.

        Args:
            snapshot: Snapshot to persist.

        Returns:
            True on success, False if the write failed (logged).
        """
        line = json.dumps(snapshot.to_dict(), separators=(",", ":"), default=str) + "\n"
        with self._lock:
            try:
                self._fs.append_text(self.snapshots_file, line)
                return True
            except OSError as e:
                logger.error(f"Error writing {self.snapshots_file}: {e}")
                return False

    def query(self, since: datetime) -> list[Snapshot]:
        """
        Get all snapshots created strictly after an instant.

        Args:
            since: Exclusive lower bound. Naive datetimes are taken as UTC.

        Returns:
            Matching snapshots in unspecified order. Empty list if the log
            is missing or unreadable.
        """
        bound = parse_timestamp(since)
        return [s for s in self._load_all() if s.created_at > bound]

    def count(self) -> int:
        """Get the number of readable snapshots in the log."""
        return len(self._load_all())

    def purge(self, before: datetime) -> int:
        """
        Remove snapshots created at or before an instant.

        Rewrites the surviving snapshots to a temporary file and swaps it
        in with one rename. Corrupt lines are dropped as a side effect.

        Business context: Implements the opt-in retention policy
        (PULSE_RETENTION_DAYS / `pulse-metrics purge`).

        Args:
            before: Inclusive upper bound of snapshots to drop.

        Returns:
            Number of snapshots removed. 0 if nothing matched or the
            rewrite failed (logged).
        """
        bound = parse_timestamp(before)
        with self._lock:
            snapshots = self._load_all()
            keep = [s for s in snapshots if s.created_at > bound]
            removed = len(snapshots) - len(keep)
            if removed == 0:
                return 0

            tmp_file = self.snapshots_file + ".tmp"
            content = "".join(
                json.dumps(s.to_dict(), separators=(",", ":"), default=str) + "\n" for s in keep
            )
            try:
                self._fs.write_text(tmp_file, content)
                self._fs.rename(tmp_file, self.snapshots_file)
            except OSError as e:
                logger.error(f"Error purging {self.snapshots_file}: {e}")
                return 0

        logger.info(f"Purged {removed} snapshots created at or before {bound.isoformat()}")
        return removed
