"""Request DTOs for API endpoints."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from insight_cache.entities import ContextSnippet, ContextType


class SnippetItem(BaseModel):
    """A business-context snippet supplied by the caller."""

    id: str = Field(..., description="Identifier in the context store")
    type: ContextType = Field(..., description="Kind of business context")
    text: str = Field(..., description="Snippet content", min_length=1)
    created_at: datetime | None = Field(None, description="When the snippet was stored")
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_entity(self) -> ContextSnippet:
        return ContextSnippet(
            id=self.id,
            type=self.type,
            text=self.text,
            created_at=self.created_at,
            metadata=self.metadata,
        )


class DateRange(BaseModel):
    """Inclusive analysis window."""

    start: date
    end: date


class RankContextRequest(BaseModel):
    """Request DTO for ranking context against a query."""

    query: str = Field(..., description="What the analysis is about", min_length=1)
    snippets: list[SnippetItem] = Field(default_factory=list)
    types: list[ContextType] | None = Field(None, description="Only rank these context types")
    top_k: int | None = Field(None, description="Maximum results (default: all)", ge=1)
    threshold: float | None = Field(
        None,
        description="Minimum cosine similarity (default: none)",
        ge=-1.0,
        le=1.0,
    )


class EmbedRequest(BaseModel):
    """Request DTO for embedding texts."""

    texts: list[str] = Field(..., description="Texts to embed", min_length=1)


class ConfidenceRequest(BaseModel):
    """Request DTO for scoring confidence factors."""

    data_points: int = Field(0, ge=0)
    data_sources: int = Field(0, ge=0)
    time_range_days: int = Field(0, ge=0)
    metric_variety: int = Field(0, ge=0)
    has_historical_data: bool = False
    context_available: bool = False


class PrepareInsightRequest(BaseModel):
    """Request DTO for preparing an insight."""

    metrics: dict[str, Any] = Field(..., description="Metric payload to analyse", min_length=1)
    snippets: list[SnippetItem] = Field(default_factory=list)
    query: str | None = None
    platform: str | None = None
    date_range: DateRange | None = None
    brand_name: str | None = None
