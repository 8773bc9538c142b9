"""Protocol interfaces for swappable implementations.

Protocols enable:
- Swapping the durable tier (Redis today, anything key-value tomorrow)
- Swapping the embedding provider (OpenAI, Azure, a local server, ...)
- Unit testing with fake implementations

Usage:
    ```python
    from insight_cache.protocols import CacheTier, EmbeddingProvider

    memory: CacheTier = MemoryCacheTier()
    durable: CacheTier = RedisCacheTier.create()
    ```
"""

from .cache_tier import CacheTier
from .context_source import ContextSource
from .embedding_provider import EmbeddingProvider, ProviderResponse

__all__ = [
    "CacheTier",
    "ContextSource",
    "EmbeddingProvider",
    "ProviderResponse",
]
