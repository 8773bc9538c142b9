"""Cache entry domain entity."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntryEntity:
    """Domain entity for a value held by a cache tier.

    Attributes:
        key: The cache key
        value: The cached payload (must be JSON serializable for the durable tier)
        created_at: Unix timestamp of the write
        ttl: Time-to-live in seconds
    """

    key: str
    value: Any
    created_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        """An entry is fresh while its age does not exceed its ttl."""
        return now - self.created_at <= self.ttl

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl

    def to_envelope(self) -> dict[str, Any]:
        """Durable-tier representation: ``{data, timestamp, ttl}``."""
        return {"data": self.value, "timestamp": self.created_at, "ttl": self.ttl}

    @classmethod
    def from_envelope(cls, key: str, envelope: dict[str, Any]) -> "CacheEntryEntity":
        """Rebuild an entry from its durable-tier envelope.

        Raises:
            KeyError: If a field is missing
            ValueError: If timestamp or ttl are not numbers
        """
        return cls(
            key=key,
            value=envelope["data"],
            created_at=float(envelope["timestamp"]),
            ttl=float(envelope["ttl"]),
        )
