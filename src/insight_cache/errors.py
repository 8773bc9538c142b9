"""Error taxonomy for the caching and retrieval layer.

Propagation rules:
    - ProviderError: raised to the caller of a synchronous path, logged and
      dropped on background revalidation.
    - StorageQuotaError: never leaves the durable tier; the write is logged and
      the key lives in memory only.
    - DimensionMismatchError: always raised (mixed embedding models).
    - ValidationError: always raised (malformed key or pattern).
"""


class InsightCacheError(Exception):
    """Base class for every error raised by this package."""


class ProviderError(InsightCacheError):
    """An embedding or data-source call failed."""


class StorageQuotaError(InsightCacheError):
    """A durable-tier write was rejected by the backend."""


class DimensionMismatchError(InsightCacheError, ValueError):
    """Two vectors of different length were compared."""

    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"Embeddings must have the same dimensions (got {left} and {right})")
        self.left = left
        self.right = right


class ValidationError(InsightCacheError, ValueError):
    """A cache key, namespace or pattern is malformed."""
