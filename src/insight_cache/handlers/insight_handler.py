"""HTTP handlers for ranking, embedding and insight preparation.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import time

from fastapi import HTTPException, status

from insight_cache.dto import (
    CacheInvalidateResponse,
    ConfidenceRequest,
    ConfidenceResponse,
    EmbeddingItem,
    EmbedRequest,
    EmbedResponse,
    HealthCheckResponse,
    PrepareInsightRequest,
    PrepareInsightResponse,
    RankContextRequest,
    RankContextResponse,
    RankedSnippetItem,
)
from insight_cache.entities import ConfidenceFactors, ConfidenceResult, RankedSnippet
from insight_cache.errors import DimensionMismatchError, ProviderError, ValidationError
from insight_cache.services import EmbeddingService, InsightService


def _http_error(action: str, error: Exception) -> HTTPException:
    if isinstance(error, (ValidationError, DimensionMismatchError)):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, ProviderError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=f"Failed to {action}: {error}")


def _ranked_item(ranked: RankedSnippet) -> RankedSnippetItem:
    return RankedSnippetItem(
        id=ranked.snippet.id,
        type=ranked.snippet.type,
        text=ranked.snippet.text,
        similarity=ranked.similarity,
    )


def _confidence_response(result: ConfidenceResult) -> ConfidenceResponse:
    return ConfidenceResponse(score=result.score, level=result.level, shown=result.shown)


class InsightHandler:
    """HTTP handlers for the caching and retrieval layer.

    This handler delegates business logic to the services and handles
    HTTP-specific concerns like:
    - Converting entities to DTOs
    - Mapping error types to status codes
    """

    def __init__(self, insight_service: InsightService, embedding_service: EmbeddingService) -> None:
        """Initialize the handler.

        Args:
            insight_service: Orchestrates cache, ranking and scoring (required).
            embedding_service: Embedding cache and batcher (required).
        """
        self._insights = insight_service
        self._embeddings = embedding_service

    async def rank_context(self, request: RankContextRequest) -> RankContextResponse:
        """Handle POST /context/rank requests.

        Without ``top_k``/``threshold`` every snippet is returned, ranked.
        """
        try:
            start_time = time.time()
            snippets = [item.to_entity() for item in request.snippets]
            ranked = await self._insights.ranker.retrieve(
                request.query,
                snippets,
                types=request.types,
                top_k=request.top_k or len(snippets),
                threshold=-1.0 if request.threshold is None else request.threshold,
            )
            lookup_time_ms = (time.time() - start_time) * 1000

            return RankContextResponse(
                query=request.query,
                results=[_ranked_item(result) for result in ranked],
                lookup_time_ms=lookup_time_ms,
            )

        except Exception as e:
            raise _http_error("rank context", e) from e

    async def embed(self, request: EmbedRequest) -> EmbedResponse:
        """Handle POST /embeddings requests."""
        try:
            results = await self._embeddings.embed_batch(request.texts)

            return EmbedResponse(
                model=self._embeddings.provider.model_name,
                results=[
                    EmbeddingItem(
                        dimension=len(result.vector),
                        cached=result.cached,
                        tokens=result.tokens,
                        embedding_preview=result.vector[:10],
                    )
                    for result in results
                ],
            )

        except Exception as e:
            raise _http_error("generate embeddings", e) from e

    async def score_confidence(self, request: ConfidenceRequest) -> ConfidenceResponse:
        """Handle POST /insights/confidence requests."""
        factors = ConfidenceFactors(**request.model_dump())
        return _confidence_response(self._insights.scorer.evaluate(factors))

    async def prepare_insight(self, request: PrepareInsightRequest) -> PrepareInsightResponse:
        """Handle POST /insights/prepare requests.

        A suppressed insight is still a 200: the response carries the score
        and no prompts.
        """
        try:
            plan = await self._insights.prepare(
                metrics=request.metrics,
                snippets=[item.to_entity() for item in request.snippets],
                query=request.query,
                platform=request.platform,
                date_range=request.date_range.model_dump() if request.date_range else None,
                brand_name=request.brand_name,
            )

            return PrepareInsightResponse(
                confidence=_confidence_response(plan.confidence),
                context=[_ranked_item(result) for result in plan.context],
                system_prompt=plan.system_prompt,
                user_prompt=plan.user_prompt,
            )

        except Exception as e:
            raise _http_error("prepare insight", e) from e

    async def invalidate_cache(self, prefix: str | None = None) -> CacheInvalidateResponse:
        """Handle DELETE /cache requests."""
        try:
            coordinator = self._insights.coordinator
            if prefix is None:
                coordinator.clear()
                return CacheInvalidateResponse(success=True, message="Cache cleared successfully")

            count = coordinator.invalidate_prefix(prefix)
            return CacheInvalidateResponse(
                success=True,
                deleted_count=count,
                message=f"Invalidated entries starting with {prefix!r}",
            )

        except Exception as e:
            raise _http_error("invalidate cache", e) from e

    async def get_stats(self) -> dict:
        """Handle GET /stats requests."""
        try:
            return {
                "cache": self._insights.coordinator.stats(),
                "embeddings": self._embeddings.get_stats(),
            }
        except Exception as e:
            raise _http_error("get stats", e) from e

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        cache_healthy = self._insights.coordinator.durable.health_check()
        embedding_healthy = await self._embeddings.is_healthy()

        return HealthCheckResponse(
            status="healthy" if cache_healthy and embedding_healthy else "unhealthy",
            cache_healthy=cache_healthy,
            embedding_healthy=embedding_healthy,
        )
