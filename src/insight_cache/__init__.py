"""Insight Cache - caching and semantic retrieval for marketing insights.

This package sits between request handlers and two expensive dependencies,
the metrics source and the embedding provider:

Layers:
    - protocols: Interface contracts (CacheTier, EmbeddingProvider, ContextSource)
    - repositories: Memory and Redis cache tiers, OpenAI embedding provider
    - services: Revalidation, embedding batching, ranking, confidence, insights
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from insight_cache import (
        EmbeddingService, MemoryCacheTier, OpenAIEmbeddingProvider,
        RedisCacheTier, RevalidationCoordinator, build_key,
    )

    coordinator = RevalidationCoordinator(MemoryCacheTier(), RedisCacheTier.create())
    metrics = await coordinator.cached_fetch(build_key("metrics", {"days": 30}), load_metrics)
    ```

For HTTP API:
    ```python
    from insight_cache.api.app import app
    ```
"""

from insight_cache.config import get_redis_client, settings
from insight_cache.entities import (
    CacheEntryEntity,
    ConfidenceFactors,
    ConfidenceResult,
    ContextSnippet,
    ContextType,
    EmbeddingRecord,
    EmbeddingResult,
    RankedSnippet,
)
from insight_cache.errors import (
    DimensionMismatchError,
    InsightCacheError,
    ProviderError,
    StorageQuotaError,
    ValidationError,
)
from insight_cache.keys import build_key
from insight_cache.protocols import CacheTier, ContextSource, EmbeddingProvider
from insight_cache.repositories import MemoryCacheTier, OpenAIEmbeddingProvider, RedisCacheTier
from insight_cache.services import (
    CacheConfig,
    ConfidenceScorer,
    ContextRanker,
    EmbeddingCache,
    EmbeddingService,
    InsightPlan,
    InsightService,
    RevalidationCoordinator,
    cosine_similarity,
    fingerprint,
)

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Errors
    "InsightCacheError",
    "ProviderError",
    "StorageQuotaError",
    "DimensionMismatchError",
    "ValidationError",
    # Keys
    "build_key",
    # Protocols (interfaces)
    "CacheTier",
    "ContextSource",
    "EmbeddingProvider",
    # Repositories (data access)
    "MemoryCacheTier",
    "RedisCacheTier",
    "OpenAIEmbeddingProvider",
    # Services (business logic)
    "CacheConfig",
    "RevalidationCoordinator",
    "EmbeddingCache",
    "EmbeddingService",
    "ContextRanker",
    "ConfidenceScorer",
    "InsightPlan",
    "InsightService",
    "cosine_similarity",
    "fingerprint",
    # Entities (domain models)
    "CacheEntryEntity",
    "EmbeddingRecord",
    "EmbeddingResult",
    "ContextSnippet",
    "ContextType",
    "RankedSnippet",
    "ConfidenceFactors",
    "ConfidenceResult",
]
