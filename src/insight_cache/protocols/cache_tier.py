"""Cache tier protocol.

Both physical tiers (process memory and the durable store) satisfy the same
contract, so the revalidation coordinator treats them interchangeably.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheTier(Protocol):
    """Protocol for an expiring key-value cache tier.

    Any type that implements these methods satisfies the protocol, no
    explicit inheritance needed.
    """

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or expired.

        Reading an expired entry deletes it.
        """
        ...

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value with a time-to-live in seconds.

        Tiers with storage limits swallow quota failures.
        """
        ...

    def invalidate(self, key: str) -> None:
        """Remove a single key."""
        ...

    def invalidate_prefix(self, pattern: str) -> int:
        """Remove every key starting with ``pattern``.

        Returns:
            Number of entries removed
        """
        ...

    def clear(self) -> None:
        """Remove every entry held by this tier."""
        ...

    def health_check(self) -> bool:
        """Check if the tier is usable."""
        ...

    def stats(self) -> dict:
        """Return tier statistics (implementation-specific)."""
        ...
