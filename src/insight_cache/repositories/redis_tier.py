"""Redis implementation of the durable cache tier.

Entries survive process restarts. Each value is stored as a JSON envelope
``{"data": ..., "timestamp": ..., "ttl": ...}`` so freshness is decided the
same way as in memory; a Redis expiry is set as well so abandoned keys do
not pile up.
"""

import json
import math
import time
from collections.abc import Callable
from typing import Any

import redis
from loguru import logger

from insight_cache.config import get_redis_client, settings
from insight_cache.entities import CacheEntryEntity
from insight_cache.errors import StorageQuotaError
from insight_cache.keys import validate_key, validate_pattern
from insight_cache.repositories.memory_tier import resolve_ttl


def _text(raw: bytes | str) -> str:
    return raw.decode() if isinstance(raw, bytes) else raw


class RedisCacheTier:
    """Redis-backed implementation of CacheTier.

    This class satisfies the CacheTier protocol through structural
    typing - no explicit inheritance needed.

    Write failures (including ``OOM command not allowed`` once Redis hits
    ``maxmemory``) never reach the caller: they are logged and the entry
    simply is not persisted.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        namespace: str | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Initialize the Redis cache tier.

        Args:
            redis_client: Redis client instance. If None, creates default.
            namespace: Prefix for every stored key. Defaults to settings.
            clock: Returns the current Unix time. Defaults to time.time.
        """
        self._client = redis_client or get_redis_client()
        self._namespace = namespace or settings.cache_namespace
        self._clock = clock or time.time
        self._failed_writes = 0

    @classmethod
    def create(cls, namespace: str | None = None) -> "RedisCacheTier":
        """Factory method to create RedisCacheTier with defaults.

        Args:
            namespace: Key prefix. If None, uses settings.

        Returns:
            Configured RedisCacheTier
        """
        return cls(namespace=namespace)

    def _storage_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    def _logical_key(self, storage_key: bytes | str) -> str:
        return _text(storage_key)[len(self._namespace) + 1 :]

    def get(self, key: str) -> Any | None:
        validate_key(key)
        storage_key = self._storage_key(key)
        try:
            raw = self._client.get(storage_key)
        except redis.RedisError as e:
            logger.warning(f"Durable tier read failed for {key}: {e}")
            return None

        if raw is None:
            return None

        try:
            entry = CacheEntryEntity.from_envelope(key, json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Dropping corrupt durable entry {key}: {e}")
            self.invalidate(key)
            return None

        if not entry.is_fresh(self._clock()):
            self.invalidate(key)
            return None

        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        validate_key(key)
        entry = CacheEntryEntity(key=key, value=value, created_at=self._clock(), ttl=resolve_ttl(ttl))
        # Values that are not JSON serializable are a programming error and propagate
        payload = json.dumps(entry.to_envelope())

        try:
            self._write(self._storage_key(key), payload, entry.ttl)
        except StorageQuotaError as e:
            self._failed_writes += 1
            logger.warning(f"Durable tier write skipped for {key}: {e}")

    def _write(self, storage_key: str, payload: str, ttl: float) -> None:
        try:
            self._client.set(storage_key, payload, px=max(1, math.ceil(ttl * 1000)))
        except redis.RedisError as e:
            raise StorageQuotaError(str(e)) from e

    def invalidate(self, key: str) -> None:
        try:
            self._client.delete(self._storage_key(key))
        except redis.RedisError as e:
            logger.warning(f"Durable tier delete failed for {key}: {e}")

    def invalidate_prefix(self, pattern: str) -> int:
        """Delete every key starting with ``pattern``.

        Returns:
            Number of keys deleted before any Redis error stopped the scan
        """
        validate_pattern(pattern)
        count = 0
        try:
            for storage_key in self._client.scan_iter(match=f"{self._namespace}:*"):
                if self._logical_key(storage_key).startswith(pattern):
                    if self._client.delete(storage_key):
                        count += 1
        except redis.RedisError as e:
            logger.warning(f"Durable tier prefix invalidation failed for {pattern}: {e}")
        return count

    def clear(self) -> None:
        try:
            doomed = list(self._client.scan_iter(match=f"{self._namespace}:*"))
            if doomed:
                self._client.delete(*doomed)
        except redis.RedisError as e:
            logger.warning(f"Durable tier clear failed for namespace {self._namespace}: {e}")

    def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    def stats(self) -> dict:
        try:
            count = sum(1 for _ in self._client.scan_iter(match=f"{self._namespace}:*"))
        except redis.RedisError as e:
            logger.warning(f"Durable tier stats unavailable: {e}")
            count = None
        return {
            "tier": "redis",
            "namespace": self._namespace,
            "total_entries": count,
            "failed_writes": self._failed_writes,
        }

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
