"""
Cache-aside coordinator for inventory reads.
"""

import asyncio
import functools
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Set, TYPE_CHECKING

from shared.logging import get_logger
from .keys import namespace_of, versioned_key

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector
    from ..store.redis_store import KeyValueStore


Fetch = Callable[[], Awaitable[Any]]


class CacheAsideCoordinator:
    """Get-or-populate reads, write-through updates and versioned invalidation.

    A cache hit is trusted for its remaining TTL; nothing else is checked.
    A ``None`` result is never cached, so a missing entity always falls
    through to the origin and a freshly created one is visible immediately.

    Concurrent misses on the same key each call ``fetch`` and each write the
    result; the last write wins. Passing ``coalesce_misses=True`` makes them
    share one in-flight fetch instead.

    Store and fetch errors are not caught here. Whether a store outage should
    degrade to "always fetch" is the caller's decision.
    """

    def __init__(
        self,
        store: "KeyValueStore",
        *,
        metrics: Optional["MetricsCollector"] = None,
        coalesce_misses: bool = False,
    ):
        self.store = store
        self.metrics = metrics
        self.coalesce_misses = coalesce_misses
        self.logger = get_logger("inventory.cache.coordinator")
        self._in_flight: Dict[str, "asyncio.Task[Any]"] = {}
        # Holds running populations so an abandoned one is not garbage collected
        self._populating: Set["asyncio.Task[Any]"] = set()

    async def get_or_set(self, key: str, fetch: Fetch, ttl_seconds: int) -> Any:
        """Return the cached value for ``key``, populating it from ``fetch`` on a miss."""
        namespace = namespace_of(key)
        cached = await self.store.get(key)
        if cached is not None:
            self.logger.debug("Cache hit", key=key)
            self._count("cache_lookups_total", namespace=namespace, result="hit")
            return cached

        self.logger.debug("Cache miss", key=key)
        self._count("cache_lookups_total", namespace=namespace, result="miss")

        if self.coalesce_misses:
            task = self._in_flight.get(key)
            if task is None:
                task = self._spawn_populate(key, fetch, ttl_seconds)
                self._in_flight[key] = task
                task.add_done_callback(functools.partial(self._release, key))
            else:
                self.logger.debug("Joining in-flight fetch", key=key)
        else:
            task = self._spawn_populate(key, fetch, ttl_seconds)

        # Shielded so an abandoned caller does not cancel the fetch or its write
        return await asyncio.shield(task)

    async def write_through(self, keys: Iterable[str], value: Any, ttl_seconds: int) -> None:
        """Mirror a successful origin write into every key the entity is indexed by."""
        keys = list(keys)
        if value is None:
            self.logger.debug("Skipping write-through of empty value", keys=keys)
            return

        await asyncio.gather(*(self.store.set(key, value, ttl_seconds) for key in keys))
        for key in keys:
            self._count("cache_writes_total", namespace=namespace_of(key), source="write_through")
        self.logger.debug("Write-through completed", keys=keys, ttl=ttl_seconds)

    async def current_version(self, version_key: str) -> int:
        """Read a collection's version counter; an unset counter is version 0."""
        value = await self.store.get(version_key)
        return int(value) if value is not None else 0

    async def invalidate(self, version_key: str) -> int:
        """Bump a collection's version so cached listing pages are no longer looked up.

        Old pages are not deleted; they stay in the store until their TTL ends.
        """
        version = await self.store.increment(version_key)
        self._count("cache_version_bumps_total", version_key=version_key)
        self.logger.info("Listing cache invalidated", version_key=version_key, version=version)
        return version

    async def listing_key(self, version_key: str, namespace: str, page: int, filter_digest: str) -> str:
        """Build a listing key from the collection version as of now."""
        version = await self.current_version(version_key)
        return versioned_key(namespace, version, page, filter_digest)

    async def get_or_set_listing(
        self,
        version_key: str,
        namespace: str,
        page: int,
        filter_digest: str,
        fetch: Fetch,
        ttl_seconds: int,
    ) -> Any:
        """Cache-aside read of one listing page under the current collection version."""
        key = await self.listing_key(version_key, namespace, page, filter_digest)
        return await self.get_or_set(key, fetch, ttl_seconds)

    def _spawn_populate(self, key: str, fetch: Fetch, ttl_seconds: int) -> "asyncio.Task[Any]":
        task = asyncio.ensure_future(self._populate(key, fetch, ttl_seconds))
        self._populating.add(task)
        task.add_done_callback(self._populating.discard)
        task.add_done_callback(self._log_failure)
        return task

    async def _populate(self, key: str, fetch: Fetch, ttl_seconds: int) -> Any:
        namespace = namespace_of(key)
        if self.metrics:
            with self.metrics.time_operation("cache_fetch_duration_seconds", namespace=namespace):
                value = await fetch()
        else:
            value = await fetch()

        if value is None:
            self.logger.debug("Origin returned no value; not caching", key=key)
            return None

        await self.store.set(key, value, ttl_seconds)
        self._count("cache_writes_total", namespace=namespace, source="miss")
        return value

    def _release(self, key: str, task: "asyncio.Task[Any]") -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    def _log_failure(self, task: "asyncio.Task[Any]") -> None:
        # Retrieves the exception so abandoned populations do not warn at GC
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.logger.debug("Cache population failed", error=str(exc))

    def _count(self, metric_name: str, **labels) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, **labels)
