"""
Local read cache for server query results.

Results are stored under tuple keys such as ``("reservations", "my")`` or
``("book", 5)``. Invalidation works by prefix: invalidating
``("reservations",)`` drops every reservation query, so dependent readers
refetch on their next ``fetch``.

Every key carries a generation counter that ``set`` and ``invalidate`` bump.
A loader started before an invalidation does not write its (possibly stale)
result back into the cache.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from .observability import trace_cache_operation

logger = logging.getLogger(__name__)

T = TypeVar("T")

CacheKey = tuple[Any, ...]


class QueryKeys:
    """Named keys of the queries the reservation layer reads and invalidates."""

    RESERVATIONS: CacheKey = ("reservations",)
    MY_RESERVATIONS: CacheKey = ("reservations", "my")
    ACTIVE_RESERVATIONS: CacheKey = ("reservations", "active")
    BOOKS: CacheKey = ("books",)
    UNREAD_NOTIFICATIONS: CacheKey = ("notifications", "unread-count")

    @staticmethod
    def book(book_id: int) -> CacheKey:
        return ("book", book_id)

    @staticmethod
    def book_details() -> CacheKey:
        """Prefix of every book detail key."""
        return ("book",)


@dataclass
class _CacheEntry:
    value: Any
    stored_at: float


class QueryCache:
    """
    In-process key-addressed store with prefix invalidation.

    Args:
        ttl: Seconds an entry stays fresh; ``0`` keeps entries until
            invalidated
    """

    def __init__(self, ttl: float = 0):
        self.ttl = ttl
        self._entries: dict[CacheKey, _CacheEntry] = {}
        self._generations: dict[CacheKey, int] = {}

    def _is_fresh(self, entry: _CacheEntry) -> bool:
        return not self.ttl or time.monotonic() - entry.stored_at < self.ttl

    def _bump(self, key: CacheKey) -> None:
        self._generations[key] = self._generations.get(key, 0) + 1

    def get(self, key: CacheKey, default: Any = None) -> Any:
        """Return the fresh value stored under ``key``, or ``default``."""
        entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry):
            return default
        return entry.value

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and self._is_fresh(entry)

    def set(self, key: CacheKey, value: Any) -> None:
        """Store ``value`` under ``key``, superseding any in-flight load."""
        self._bump(key)
        self._entries[key] = _CacheEntry(value=value, stored_at=time.monotonic())

    def invalidate(self, prefix: CacheKey) -> list[CacheKey]:
        """
        Drop every entry whose key starts with ``prefix``.

        Returns:
            The keys that were dropped
        """
        size = len(prefix)
        with trace_cache_operation("invalidate", prefix):
            dropped = [key for key in self._entries if key[:size] == prefix]
            for key in dropped:
                del self._entries[key]
            # In-flight loads of matching keys must not repopulate them
            for key in list(self._generations):
                if key[:size] == prefix:
                    self._bump(key)
        logger.debug("Invalidated %d cache entries under %s", len(dropped), prefix)
        return dropped

    async def fetch(self, key: CacheKey, loader: Callable[[], Awaitable[T]]) -> T:
        """
        Return the cached value for ``key``, loading it on a miss.

        A loader failure propagates and leaves the key absent. A loaded value
        is stored only if ``key`` was neither set nor invalidated meanwhile;
        it is returned to the caller either way.
        """
        entry = self._entries.get(key)
        if entry is not None and self._is_fresh(entry):
            return entry.value

        generation = self._generations.setdefault(key, 0)
        with trace_cache_operation("load", key):
            value = await loader()

        if self._generations.get(key, 0) == generation:
            self._entries[key] = _CacheEntry(value=value, stored_at=time.monotonic())
        else:
            logger.debug("Discarded stale load for %s", key)
        return value

    def clear(self) -> None:
        self._entries.clear()
        for key in list(self._generations):
            self._bump(key)
