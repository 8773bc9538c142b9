from typing import Any

from fastapi import FastAPI

from insight_cache.api.dependencies import HandlerDep, lifespan
from insight_cache.config import settings
from insight_cache.dto import (
    CacheInvalidateResponse,
    ConfidenceRequest,
    ConfidenceResponse,
    EmbedRequest,
    EmbedResponse,
    HealthCheckResponse,
    PrepareInsightRequest,
    PrepareInsightResponse,
    RankContextRequest,
    RankContextResponse,
)

app = FastAPI(
    title="Insight Cache API",
    description="Caching, embedding and context ranking for marketing insights",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Insight Cache API",
        "version": "0.1.0",
        "embedding_model": settings.embedding_model,
        "endpoints": {
            "health": "/health",
            "rank": "/context/rank",
            "embeddings": "/embeddings",
            "confidence": "/insights/confidence",
            "prepare": "/insights/prepare",
            "cache": "/cache",
            "stats": "/stats",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    """Health check endpoint."""
    return await handler.health_check()


@app.post("/context/rank", response_model=RankContextResponse)
async def rank_context(request: RankContextRequest, handler: HandlerDep) -> RankContextResponse:
    """Rank business-context snippets by relevance to a query."""
    return await handler.rank_context(request)


@app.post("/embeddings", response_model=EmbedResponse)
async def embed(request: EmbedRequest, handler: HandlerDep) -> EmbedResponse:
    """Embed texts through the embedding cache."""
    return await handler.embed(request)


@app.post("/insights/confidence", response_model=ConfidenceResponse)
async def score_confidence(request: ConfidenceRequest, handler: HandlerDep) -> ConfidenceResponse:
    """Score data-quality factors."""
    return await handler.score_confidence(request)


@app.post("/insights/prepare", response_model=PrepareInsightResponse)
async def prepare_insight(request: PrepareInsightRequest, handler: HandlerDep) -> PrepareInsightResponse:
    """Rank context, score confidence and build prompts."""
    return await handler.prepare_insight(request)


@app.delete("/cache", response_model=CacheInvalidateResponse)
async def invalidate_cache(handler: HandlerDep, prefix: str | None = None) -> CacheInvalidateResponse:
    """Invalidate cached entries by key prefix, or everything."""
    return await handler.invalidate_cache(prefix)


@app.get("/stats", response_model=dict[str, Any])
async def get_stats(handler: HandlerDep) -> dict[str, Any]:
    """Cache and embedding statistics."""
    return await handler.get_stats()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "insight_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
