"""Semantic ranking of stored business context.

The query and every candidate snippet are embedded in one batched call,
then candidates are ordered by cosine similarity to the query.
"""

from loguru import logger

from insight_cache.config import settings
from insight_cache.entities import ContextSnippet, ContextType, RankedSnippet
from insight_cache.services.embedding_service import EmbeddingService, cosine_similarity


class ContextRanker:
    """Orders business-context snippets by relevance to a query.

    Example:
        ```python
        ranker = ContextRanker(embedding_service)
        ranked = await ranker.retrieve("Why did conversions drop?", snippets)
        prompt_lines = ranker.format_for_prompt(ranked)
        ```
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        top_k: int | None = None,
        similarity_threshold: float | None = None,
    ) -> None:
        """Initialize the ranker.

        Args:
            embedding_service: Service used to embed query and snippets.
            top_k: Default cap for ``retrieve``. Defaults to settings.
            similarity_threshold: Default floor for ``retrieve``. Defaults to settings.
        """
        self._embeddings = embedding_service
        self._top_k = top_k if top_k is not None else settings.rag_top_k
        self._threshold = (
            similarity_threshold if similarity_threshold is not None else settings.rag_similarity_threshold
        )

    async def score(self, query: str, snippets: list[ContextSnippet]) -> list[RankedSnippet]:
        """Score every snippet against the query, most similar first.

        Ties keep their input order. An empty pool returns an empty list
        without touching the provider.

        Raises:
            ProviderError: If embedding fails
            DimensionMismatchError: If cached vectors come from different models
        """
        if not snippets:
            return []

        results = await self._embeddings.embed_batch([query] + [snippet.text for snippet in snippets])
        query_vector = results[0].vector

        scored = [
            RankedSnippet(snippet=snippet, similarity=cosine_similarity(query_vector, result.vector))
            for snippet, result in zip(snippets, results[1:])
        ]
        # list.sort is stable, so equal similarities keep input order
        scored.sort(key=lambda ranked: ranked.similarity, reverse=True)
        return scored

    async def rank(self, query: str, snippets: list[ContextSnippet]) -> list[ContextSnippet]:
        """Every snippet, most relevant first. No cap is applied."""
        return [ranked.snippet for ranked in await self.score(query, snippets)]

    async def retrieve(
        self,
        query: str,
        snippets: list[ContextSnippet],
        types: list[ContextType] | None = None,
        top_k: int | None = None,
        threshold: float | None = None,
    ) -> list[RankedSnippet]:
        """Select the snippets worth injecting into a prompt.

        Args:
            query: What the analysis is about
            snippets: Candidate pool
            types: Only consider these context types
            top_k: Maximum results. Defaults to the ranker's setting.
            threshold: Minimum similarity. Defaults to the ranker's setting.

        Returns:
            At most ``top_k`` ranked snippets with similarity >= threshold
        """
        top_k = self._top_k if top_k is None else top_k
        threshold = self._threshold if threshold is None else threshold

        if types:
            wanted = set(types)
            snippets = [snippet for snippet in snippets if snippet.type in wanted]

        ranked = [result for result in await self.score(query, snippets) if result.similarity >= threshold]
        ranked = ranked[:top_k]
        logger.info(f"Found {len(ranked)} relevant contexts for query")
        return ranked

    @staticmethod
    def format_for_prompt(ranked: list[RankedSnippet]) -> list[str]:
        """Render ranked snippets as prompt blocks.

        Example:
            ``"[GOAL] (relevance: 87%)\\nGrow Q3 revenue by 20%"``
        """
        return [
            f"[{result.snippet.type.value.upper()}] (relevance: {result.similarity * 100:.0f}%)\n{result.snippet.text}"
            for result in ranked
        ]

    @property
    def top_k(self) -> int:
        return self._top_k

    @property
    def threshold(self) -> float:
        return self._threshold
