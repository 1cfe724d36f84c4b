"""
Shared query cache for backend lists (classes, students, instructors, horses).

One instance per process, passed explicitly to whoever needs it. Values are
only ever replaced by a fetch; mutations go to the backend and then call
invalidate(). A fetch that was already in flight when its key got invalidated
still returns its result to its caller, but does not repopulate the cache, so
the next read refetches and the latest fetch wins.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List

from app.core.enums import QueryKey

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]
Subscriber = Callable[[QueryKey], None]


@dataclass
class _Entry:
    value: Any = None
    loaded: bool = False
    generation: int = 0


class QueryCache:
    """Typed-key cache with invalidate/subscribe."""

    def __init__(self) -> None:
        self._entries: Dict[QueryKey, _Entry] = {key: _Entry() for key in QueryKey}
        self._subscribers: Dict[QueryKey, List[Subscriber]] = {key: [] for key in QueryKey}
        self._locks: Dict[QueryKey, asyncio.Lock] = {}

    def _lock(self, key: QueryKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def is_loaded(self, key: QueryKey) -> bool:
        return self._entries[QueryKey(key)].loaded

    async def get(self, key: QueryKey, fetcher: Fetcher) -> Any:
        """
        Return the cached value for key, fetching it once if missing.

        Concurrent readers of the same missing key share one fetch. Fetch
        errors propagate and leave the key unloaded.
        """
        key = QueryKey(key)
        entry = self._entries[key]
        if entry.loaded:
            return entry.value
        async with self._lock(key):
            if entry.loaded:
                return entry.value
            generation = entry.generation
            value = await fetcher()
            if entry.generation == generation:
                entry.value = value
                entry.loaded = True
            else:
                logger.debug("Discarding stale fetch for %s", key.value)
            return value

    def invalidate(self, key: QueryKey) -> None:
        """Drop the cached value and notify subscribers of key."""
        key = QueryKey(key)
        entry = self._entries[key]
        entry.value = None
        entry.loaded = False
        entry.generation += 1
        logger.debug("Invalidated %s (generation %d)", key.value, entry.generation)
        for callback in list(self._subscribers[key]):
            callback(key)

    def subscribe(self, key: QueryKey, callback: Subscriber) -> Callable[[], None]:
        """Register callback(key) for invalidations of key. Returns an unsubscribe function."""
        key = QueryKey(key)
        self._subscribers[key].append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers[key]:
                self._subscribers[key].remove(callback)

        return unsubscribe
