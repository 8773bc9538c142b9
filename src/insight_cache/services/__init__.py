"""Service layer for business logic.

Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .confidence import ConfidenceScorer
from .context_ranker import ContextRanker
from .embedding_service import EmbeddingCache, EmbeddingService, cosine_similarity, fingerprint
from .insight_service import InsightPlan, InsightService
from .prompts import build_metric_analysis_prompt, build_system_prompt
from .revalidation import CacheConfig, RevalidationCoordinator

__all__ = [
    "CacheConfig",
    "ConfidenceScorer",
    "ContextRanker",
    "EmbeddingCache",
    "EmbeddingService",
    "InsightPlan",
    "InsightService",
    "RevalidationCoordinator",
    "build_metric_analysis_prompt",
    "build_system_prompt",
    "cosine_similarity",
    "fingerprint",
]
