"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
Internal domain logic should use entities from the entities package.
"""

from .requests import (
    ConfidenceRequest,
    DateRange,
    EmbedRequest,
    PrepareInsightRequest,
    RankContextRequest,
    SnippetItem,
)
from .responses import (
    CacheInvalidateResponse,
    ConfidenceResponse,
    EmbeddingItem,
    EmbedResponse,
    HealthCheckResponse,
    PrepareInsightResponse,
    RankContextResponse,
    RankedSnippetItem,
)

__all__ = [
    "ConfidenceRequest",
    "DateRange",
    "EmbedRequest",
    "PrepareInsightRequest",
    "RankContextRequest",
    "SnippetItem",
    "CacheInvalidateResponse",
    "ConfidenceResponse",
    "EmbeddingItem",
    "EmbedResponse",
    "HealthCheckResponse",
    "PrepareInsightResponse",
    "RankContextResponse",
    "RankedSnippetItem",
]
