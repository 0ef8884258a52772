"""
Optimistic unread-notification counter.

Every reservation action makes the backend emit a notification, so the
unread badge is bumped before the request is sent and corrected afterwards.
Each mutation runs the steps in this order, on its own context:

1. ``begin``    - read the cached count ``n``, store ``n + 1``, remember ``n``
2. ``rollback`` - on failure only, restore the remembered value
3. ``resync``   - always, read the authoritative count and overwrite the cache

Resyncs of concurrent mutations may finish in any order; each one re-reads
the server, so the last to complete leaves the correct value.
"""

import logging

from pydantic import BaseModel, ConfigDict

from ..api import LibraryBackend
from ..cache import QueryCache, QueryKeys

logger = logging.getLogger(__name__)


class RollbackContext(BaseModel):
    """Count cached before an optimistic increment; ``None`` when nothing was cached."""

    previous: int | None = None

    model_config = ConfigDict(frozen=True)


class OptimisticNotificationCounter:
    """Keeps the cached unread count close to the server's during mutations."""

    def __init__(self, cache: QueryCache, backend: LibraryBackend):
        self.cache = cache
        self.backend = backend

    @property
    def value(self) -> int | None:
        return self.cache.get(QueryKeys.UNREAD_NOTIFICATIONS)

    def begin(self) -> RollbackContext:
        """
        Speculatively increment the cached count.

        Nothing is guessed when no count is cached yet; the resync step will
        load it.
        """
        previous = self.cache.get(QueryKeys.UNREAD_NOTIFICATIONS)
        if previous is None:
            return RollbackContext()
        self.cache.set(QueryKeys.UNREAD_NOTIFICATIONS, previous + 1)
        return RollbackContext(previous=previous)

    def rollback(self, context: RollbackContext | None) -> None:
        """Restore the count captured by ``begin``."""
        if context is None or context.previous is None:
            return
        self.cache.set(QueryKeys.UNREAD_NOTIFICATIONS, context.previous)

    async def resync(self) -> int | None:
        """
        Overwrite the cached count with the server's value.

        Returns:
            The authoritative count, or ``None`` if it could not be read. In
            that case the key is invalidated so the next reader refetches
            instead of trusting a guess.
        """
        try:
            count = await self.backend.get_unread_notification_count()
        except Exception as e:
            logger.warning("Unread notification resync failed: %s", e)
            self.cache.invalidate(QueryKeys.UNREAD_NOTIFICATIONS)
            return None

        self.cache.set(QueryKeys.UNREAD_NOTIFICATIONS, count)
        return count

    async def load(self) -> int:
        """Cached count, fetched from the server on a miss."""
        return await self.cache.fetch(
            QueryKeys.UNREAD_NOTIFICATIONS, self.backend.get_unread_notification_count
        )
