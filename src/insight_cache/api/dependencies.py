"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Cache tiers and services built once during lifespan
    - Dependency functions retrieve from request.app.state
    - No module-level cache state
"""

from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from loguru import logger

from insight_cache.handlers import InsightHandler
from insight_cache.repositories import MemoryCacheTier, OpenAIEmbeddingProvider, RedisCacheTier
from insight_cache.services import (
    ConfidenceScorer,
    ContextRanker,
    EmbeddingService,
    InsightService,
    RevalidationCoordinator,
)
from insight_cache.utils import setup_logger


def get_handler(request: Request) -> InsightHandler:
    """Dependency injection for InsightHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "insight_handler", None)
    if handler is None:
        raise RuntimeError("InsightHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Builds, in order: the embedding provider, both cache tiers, the
    services, and the handler, and stores them in app.state.

    Cleanup:
        Waits for background revalidations, closes the HTTP client and
        removes everything from app.state
    """
    setup_logger()
    provider = OpenAIEmbeddingProvider.create()
    embedding_service = EmbeddingService(provider)

    coordinator = RevalidationCoordinator(
        memory=MemoryCacheTier(),
        durable=RedisCacheTier.create(),
    )
    insight_service = InsightService(
        coordinator=coordinator,
        ranker=ContextRanker(embedding_service),
        scorer=ConfidenceScorer(),
    )

    app.state.insight_service = insight_service
    app.state.embedding_service = embedding_service
    app.state.insight_handler = InsightHandler(insight_service, embedding_service)

    logger.info(f"Insight cache initialized (model: {provider.model_name}, dims: {provider.dimension})")

    yield

    await coordinator.drain()
    await provider.close()

    del app.state.insight_handler
    del app.state.embedding_service
    del app.state.insight_service
    logger.info("Insight cache shut down")


# Type alias for cleaner dependency injection
HandlerDep = Annotated[InsightHandler, Depends(get_handler)]
