"""Response DTOs for API endpoints."""

from pydantic import BaseModel, Field

from insight_cache.entities import ContextType


class RankedSnippetItem(BaseModel):
    """Single ranked snippet (in results array)."""

    id: str
    type: ContextType
    text: str
    similarity: float = Field(..., description="Cosine similarity to the query", ge=-1.0, le=1.0)


class RankContextResponse(BaseModel):
    """Response DTO for context ranking."""

    query: str
    results: list[RankedSnippetItem] = Field(
        default_factory=list,
        description="Snippets sorted by similarity, most relevant first",
    )
    lookup_time_ms: float


class EmbeddingItem(BaseModel):
    """Embedding for one input text."""

    dimension: int
    cached: bool
    tokens: int
    embedding_preview: list[float] = Field(..., description="First 10 vector values")


class EmbedResponse(BaseModel):
    """Response DTO for embedding texts."""

    model: str
    results: list[EmbeddingItem]


class ConfidenceResponse(BaseModel):
    """Response DTO for a confidence evaluation."""

    score: float = Field(..., ge=0.0, le=1.0)
    level: str = Field(..., description="high, medium or low")
    shown: bool = Field(..., description="Whether the insight clears the show threshold")


class PrepareInsightResponse(BaseModel):
    """Response DTO for insight preparation."""

    confidence: ConfidenceResponse
    context: list[RankedSnippetItem] = Field(default_factory=list)
    system_prompt: str | None = None
    user_prompt: str | None = None


class CacheInvalidateResponse(BaseModel):
    """Response DTO for cache invalidation."""

    success: bool
    deleted_count: int | None = Field(None, description="Entries removed (None when everything was cleared)")
    message: str


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether the durable tier is reachable")
    embedding_healthy: bool = Field(..., description="Whether the embedding provider is reachable")
