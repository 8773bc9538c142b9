"""Stale-while-revalidate coordination over the two cache tiers.

Lookup order for ``cached_fetch``:
    1. memory tier hit  -> return it
    2. durable tier hit -> copy to memory, return it, refresh in background
    3. miss everywhere  -> call the producer, store in both tiers, return it

A caller only waits on the network when no cached value exists at all.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger

from insight_cache.config import settings
from insight_cache.keys import validate_key
from insight_cache.protocols import CacheTier

T = TypeVar("T")
Producer = Callable[[], Awaitable[T]]


@dataclass(frozen=True)
class CacheConfig:
    """Per-call cache policy.

    Attributes:
        ttl: Time-to-live in seconds. None uses the configured default.
        stale_while_revalidate: Refresh durable hits in the background.
    """

    ttl: float | None = None
    stale_while_revalidate: bool = True


class RevalidationCoordinator:
    """Serves cached values first and refreshes them without blocking callers.

    Concurrent cold misses for the same key share a single producer call.
    Background refreshes run through a bounded pool and are deduplicated per
    key; their failures are logged and never invalidate what was served.

    Example:
        ```python
        coordinator = RevalidationCoordinator(MemoryCacheTier(), RedisCacheTier.create())
        key = build_key("metrics", {"source": "ga4", "days": 30})
        metrics = await coordinator.cached_fetch(key, lambda: fetch_ga4(30))
        ```
    """

    def __init__(
        self,
        memory: CacheTier,
        durable: CacheTier,
        max_background: int | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            memory: Process-local tier.
            durable: Tier that survives restarts.
            max_background: Concurrent background refreshes allowed. Defaults to settings.
        """
        self._memory = memory
        self._durable = durable
        self._max_background = max_background or settings.cache_max_background
        self._semaphore = asyncio.Semaphore(self._max_background)
        self._inflight: dict[str, asyncio.Future] = {}
        self._revalidating: dict[str, asyncio.Future] = {}

    async def cached_fetch(
        self,
        key: str,
        producer: Producer[T],
        config: CacheConfig | None = None,
    ) -> T:
        """Return the cached value for ``key`` or produce and cache it.

        Args:
            key: Cache key (see ``build_key``)
            producer: Zero-argument coroutine function computing a fresh value
            config: Cache policy for this call

        Returns:
            The memory value, the durable value, or a freshly produced one

        Raises:
            Whatever the producer raises, on a full miss only
        """
        validate_key(key)
        config = config or CacheConfig()

        value = self._memory.get(key)
        if value is not None:
            logger.debug(f"Memory hit for {key}")
            return value

        value = self._durable.get(key)
        if value is not None:
            logger.debug(f"Durable hit for {key}")
            self._memory.set(key, value, config.ttl)
            if config.stale_while_revalidate:
                self._schedule_revalidation(key, producer, config)
            return value

        logger.debug(f"Cache miss for {key}")
        return await self._fetch_once(key, producer, config)

    async def _fetch_once(self, key: str, producer: Producer[Any], config: CacheConfig) -> Any:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._produce_and_store(key, producer, config))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget(self._inflight, key, done))
        else:
            logger.debug(f"Joining in-flight fetch for {key}")
        # shield: a cancelled waiter must not cancel the fetch others are waiting on
        return await asyncio.shield(task)

    async def _produce_and_store(self, key: str, producer: Producer[Any], config: CacheConfig) -> Any:
        value = await producer()
        self._store(key, value, config.ttl)
        return value

    def _schedule_revalidation(self, key: str, producer: Producer[Any], config: CacheConfig) -> None:
        if key in self._revalidating:
            return
        task = asyncio.ensure_future(self._revalidate(key, producer, config))
        self._revalidating[key] = task
        task.add_done_callback(lambda done: self._forget(self._revalidating, key, done))

    async def _revalidate(self, key: str, producer: Producer[Any], config: CacheConfig) -> None:
        async with self._semaphore:
            try:
                value = await producer()
                self._store(key, value, config.ttl)
            except Exception as e:
                logger.warning(f"Background revalidation failed for {key}: {e}")
                return
        logger.debug(f"Revalidated {key}")

    def _store(self, key: str, value: Any, ttl: float | None) -> None:
        # Durable first: a value it cannot serialize must leave both tiers untouched
        self._durable.set(key, value, ttl)
        self._memory.set(key, value, ttl)

    @staticmethod
    def _forget(registry: dict[str, asyncio.Future], key: str, done: asyncio.Future) -> None:
        if registry.get(key) is done:
            del registry[key]
        if not done.cancelled():
            # Mark the exception retrieved; waiters already received it
            done.exception()

    async def drain(self) -> None:
        """Wait for every scheduled background refresh to settle."""
        while self._revalidating:
            await asyncio.gather(*list(self._revalidating.values()), return_exceptions=True)

    @property
    def pending(self) -> int:
        """Number of background refreshes not yet settled."""
        return len(self._revalidating)

    def invalidate(self, key: str) -> None:
        """Drop a key from both tiers."""
        self._memory.invalidate(key)
        self._durable.invalidate(key)

    def invalidate_prefix(self, pattern: str) -> int:
        """Drop every key starting with ``pattern`` from both tiers.

        Returns:
            Number of entries removed across both tiers
        """
        return self._memory.invalidate_prefix(pattern) + self._durable.invalidate_prefix(pattern)

    def clear(self) -> None:
        """Drop everything from both tiers."""
        self._memory.clear()
        self._durable.clear()

    def stats(self) -> dict:
        return {
            "memory": self._memory.stats(),
            "durable": self._durable.stats(),
            "inflight": len(self._inflight),
            "revalidating": self.pending,
            "max_background": self._max_background,
        }

    @property
    def memory(self) -> CacheTier:
        """Get the memory tier (for testing)."""
        return self._memory

    @property
    def durable(self) -> CacheTier:
        """Get the durable tier (for testing)."""
        return self._durable
