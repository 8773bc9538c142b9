"""Repository layer for data access.

This layer hides external dependencies (Redis, embedding APIs) behind the
protocol interfaces, so services can be tested with fakes.
"""

from .memory_tier import MemoryCacheTier
from .openai_embedding_provider import OpenAIEmbeddingProvider
from .redis_tier import RedisCacheTier

__all__ = [
    "MemoryCacheTier",
    "OpenAIEmbeddingProvider",
    "RedisCacheTier",
]
