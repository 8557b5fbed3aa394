"""VisitorCache - short-lived in-memory cache of stats payloads.

Entries are keyed by upstream website identifier and live for a fixed window
(30 seconds by default) after a successful fetch. Stale entries are not
evicted; they are ignored on read and overwritten by the next store. The key
space is the handful of websites in the alias table, so growth is bounded in
practice.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached stats payload and the monotonic time it expires at."""

    payload: Any
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        """Check whether the entry may still be served."""
        return now < self.expires_at


class VisitorCache:
    """Process-local TTL cache for visitor stats.

    Usage:
        ```python
        cache = VisitorCache(ttl_seconds=30)
        payload = cache.get(website_id)
        if payload is None:
            payload = await fetch(...)
            cache.set(website_id, payload)
        ```
    """

    DEFAULT_TTL = 30.0

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            ttl_seconds: How long a stored payload stays valid
            clock: Monotonic time source, injectable for tests
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get_entry(self, website_id: str) -> CacheEntry | None:
        """Return the entry for a website if it has not expired yet."""
        entry = self._entries.get(website_id)
        if entry is None or not entry.is_fresh(self._clock()):
            return None
        return entry

    def get(self, website_id: str) -> Any | None:
        """Return the cached payload if it has not expired yet."""
        entry = self.get_entry(website_id)
        return entry.payload if entry is not None else None

    def set(self, website_id: str, payload: Any) -> CacheEntry:
        """Store a payload, replacing any previous entry for the website."""
        entry = CacheEntry(payload=payload, expires_at=self._clock() + self.ttl_seconds)
        self._entries[website_id] = entry
        logger.debug("visitor_cache_set", website_id=website_id, ttl=self.ttl_seconds)
        return entry

    def peek(self, website_id: str) -> CacheEntry | None:
        """Return the raw entry, stale or not."""
        return self._entries.get(website_id)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
