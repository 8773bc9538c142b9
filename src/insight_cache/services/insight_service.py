"""Insight preparation service.

Glues the layer together for a request handler: metric windows come
through the revalidation coordinator, business context through the ranker,
and the confidence scorer decides whether prompts are built at all.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from insight_cache.entities import ConfidenceResult, ContextSnippet, ContextType, RankedSnippet
from insight_cache.errors import ProviderError
from insight_cache.keys import build_key
from insight_cache.protocols import ContextSource
from insight_cache.services.confidence import ConfidenceScorer
from insight_cache.services.context_ranker import ContextRanker
from insight_cache.services.prompts import build_metric_analysis_prompt, build_system_prompt
from insight_cache.services.revalidation import CacheConfig, RevalidationCoordinator


@dataclass(frozen=True)
class InsightPlan:
    """Everything needed to run (or skip) an insight completion.

    ``system_prompt`` and ``user_prompt`` are None when the confidence
    score is below the show threshold.
    """

    confidence: ConfidenceResult
    context: list[RankedSnippet] = field(default_factory=list)
    system_prompt: str | None = None
    user_prompt: str | None = None

    @property
    def shown(self) -> bool:
        return self.confidence.shown


class InsightService:
    """Prepares cached metrics, ranked context and gated prompts.

    Example:
        ```python
        service = InsightService(coordinator, ranker, ConfidenceScorer())
        metrics = await service.fetch_metrics("metrics", {"source": "ga4", "days": 30}, load_ga4)
        plan = await service.prepare(metrics, snippets, platform="ga4")
        if plan.shown:
            completion = await llm.complete(plan.system_prompt, plan.user_prompt)
        ```
    """

    def __init__(
        self,
        coordinator: RevalidationCoordinator,
        ranker: ContextRanker,
        scorer: ConfidenceScorer,
    ) -> None:
        self._coordinator = coordinator
        self._ranker = ranker
        self._scorer = scorer

    async def fetch_metrics(
        self,
        namespace: str,
        params: dict[str, Any],
        producer: Callable[[], Awaitable[Any]],
        ttl: float | None = None,
    ) -> Any:
        """Fetch a metric window through the two-tier cache.

        Args:
            namespace: Logical key namespace (e.g. ``"metrics"``)
            params: Parameters identifying the window
            producer: Coroutine function loading the window from the source
            ttl: Cache lifetime in seconds. None uses the default.
        """
        key = build_key(namespace, params)
        return await self._coordinator.cached_fetch(key, producer, CacheConfig(ttl=ttl))

    async def prepare(
        self,
        metrics: dict[str, Any],
        snippets: list[ContextSnippet],
        query: str | None = None,
        platform: str | None = None,
        date_range: dict[str, Any] | None = None,
        brand_name: str | None = None,
    ) -> InsightPlan:
        """Rank context, score confidence and build prompts when warranted.

        An embedding outage does not fail the request: the plan is built
        without business context instead.
        """
        query = query or f"Analyze marketing performance for {platform or 'all platforms'}"

        try:
            context = await self._ranker.retrieve(query, snippets)
        except ProviderError as e:
            logger.warning(f"Context retrieval unavailable, continuing without context: {e}")
            context = []

        factors = self._scorer.extract_factors(metrics, len(context), date_range)
        confidence = self._scorer.evaluate(factors)
        logger.info(f"Confidence score: {confidence.score * 100:.1f}% ({confidence.level})")

        if not confidence.shown:
            return InsightPlan(confidence=confidence, context=context)

        return InsightPlan(
            confidence=confidence,
            context=context,
            system_prompt=build_system_prompt(self._ranker.format_for_prompt(context), brand_name),
            user_prompt=build_metric_analysis_prompt(metrics, platform, date_range),
        )

    async def prepare_for_owner(
        self,
        source: ContextSource,
        owner_id: str,
        metrics: dict[str, Any],
        types: list[ContextType] | None = None,
        **kwargs: Any,
    ) -> InsightPlan:
        """Load the owner's snippets from the context store, then ``prepare``."""
        snippets = await source.list_snippets(owner_id, types)
        return await self.prepare(metrics, snippets, **kwargs)

    @property
    def coordinator(self) -> RevalidationCoordinator:
        return self._coordinator

    @property
    def ranker(self) -> ContextRanker:
        return self._ranker

    @property
    def scorer(self) -> ConfidenceScorer:
        return self._scorer
