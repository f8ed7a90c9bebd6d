"""
Hourly chart cache and per-client submission throttle.

PURPOSE: Cross-cutting memoisation and rate limiting around the HTTP
entry points.
AI CONTEXT: Both are small bounded maps guarded by a lock; neither knows
anything about charts or snapshots.

HOURLY CACHE:
    key = (route, current UTC hour)
A chart rendered at 10:05 is served until 10:59; at 11:00 the key changes
and the next request renders afresh. Entries are evicted oldest-first
once the cache is full, so stale hours age out on their own.

THROTTLE:
    key = client address, value = time of last accepted submission
A client is accepted again once the window has elapsed since its last
accepted submission.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from datetime import datetime

from ..config import Config
from ..models import truncate_to_hour, utc_now

__all__ = ["ClientThrottle", "HourlyCache"]

logger = logging.getLogger(__name__)


class HourlyCache:
    """
    Bounded cache of rendered responses keyed by (route, UTC hour).

    Two concurrent misses for the same key may both compute; the later
    result simply overwrites the earlier one.

    Example:
        >>> cache = HourlyCache()
        >>> cache.get_or_compute("/svg", lambda: b"<svg/>")
        b'<svg/>'
    """

    def __init__(
        self,
        max_entries: int = Config.CHART_CACHE_MAX_ENTRIES,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.max_entries = max_entries
        self._clock = clock or utc_now
        self._entries: OrderedDict[tuple[str, datetime], bytes] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def key_for(self, route: str) -> tuple[str, datetime]:
        return (route, truncate_to_hour(self._clock()))

    def get(self, route: str) -> bytes | None:
        key = self.key_for(route)
        with self._lock:
            return self._entries.get(key)

    def put(self, route: str, content: bytes) -> None:
        key = self.key_for(route)
        with self._lock:
            self._entries[key] = content
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def get_or_compute(self, route: str, compute: Callable[[], bytes]) -> bytes:
        """
        Return the cached response for this hour or compute and store it.

        Exceptions from `compute` propagate and nothing is cached.
        """
        cached = self.get(route)
        if cached is not None:
            return cached
        logger.debug(f"Chart cache miss: {route}")
        content = compute()
        self.put(route, content)
        return content

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class ClientThrottle:
    """
    Accept at most one submission per client per window.

    Args:
        window_seconds: Minimum time between accepted submissions.
        max_entries: Clients remembered at once; the least recently
            accepted client is forgotten first.
        clock: Monotonic seconds. Default: time.monotonic.
    """

    def __init__(
        self,
        window_seconds: float = Config.THROTTLE_WINDOW_SECONDS,
        max_entries: int = Config.THROTTLE_MAX_ENTRIES,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.window_seconds = window_seconds
        self.max_entries = max_entries
        self._clock = clock or time.monotonic
        self._accepted: OrderedDict[str, float] = OrderedDict()
        self._lock = threading.Lock()

    def try_acquire(self, client: str) -> int:
        """
        Reserve the client's window if it is open.

        The check and the reservation happen under one lock, so two
        overlapping submissions from the same client cannot both pass.

        Returns:
            0 when the submission may proceed (the window now starts),
            otherwise the seconds until the client may submit again,
            rounded up so a positive remainder never reports 0.
        """
        now = self._clock()
        with self._lock:
            last = self._accepted.get(client)
            if last is not None:
                remaining = self.window_seconds - (now - last)
                if remaining > 0:
                    return math.ceil(remaining)

            self._accepted[client] = now
            self._accepted.move_to_end(client)
            while len(self._accepted) > self.max_entries:
                self._accepted.popitem(last=False)
            return 0

    def release(self, client: str) -> None:
        """Give back a reservation whose submission was not stored."""
        with self._lock:
            self._accepted.pop(client, None)

    def clear(self) -> None:
        with self._lock:
            self._accepted.clear()
