"""Process-local cache tier.

Fastest tier, lost on restart. Expiry is lazy: an entry is only checked (and
evicted) when somebody reads it.
"""

import time
from collections.abc import Callable
from typing import Any

from loguru import logger

from insight_cache.config import settings
from insight_cache.entities import CacheEntryEntity
from insight_cache.keys import validate_key, validate_pattern


def resolve_ttl(ttl: float | None) -> float:
    """Fall back to the configured default when no ttl is given."""
    if ttl is None:
        return float(settings.cache_default_ttl)
    if ttl <= 0:
        raise ValueError(f"ttl must be positive, got {ttl}")
    return float(ttl)


class MemoryCacheTier:
    """Dict-backed implementation of CacheTier.

    This class satisfies the CacheTier protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        tier = MemoryCacheTier()
        tier.set("metrics:days=30&source=ga4", {"sessions": 1200}, ttl=60)
        tier.get("metrics:days=30&source=ga4")  # {"sessions": 1200}
        ```
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        """Initialize the memory tier.

        Args:
            clock: Returns the current Unix time. Defaults to time.time.
        """
        self._entries: dict[str, CacheEntryEntity] = {}
        self._clock = clock or time.time
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        validate_key(key)
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if not entry.is_fresh(self._clock()):
            del self._entries[key]
            self._misses += 1
            logger.debug(f"Memory tier evicted expired key {key}")
            return None

        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        validate_key(key)
        self._entries[key] = CacheEntryEntity(
            key=key,
            value=value,
            created_at=self._clock(),
            ttl=resolve_ttl(ttl),
        )

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def invalidate_prefix(self, pattern: str) -> int:
        validate_pattern(pattern)
        doomed = [key for key in self._entries if key.startswith(pattern)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def health_check(self) -> bool:
        return True

    def stats(self) -> dict:
        return {
            "tier": "memory",
            "total_entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
