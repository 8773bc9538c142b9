"""Embedding cache and batcher.

Texts are fingerprinted (whitespace-normalized, SHA-256 over the whole
text) so a given business-context string is only ever sent to the provider
once per process. Batches are split into provider-sized chunks, cached
fingerprints are skipped, and the rest of each chunk goes out in one call.
"""

import asyncio
import hashlib

import numpy as np
from loguru import logger

from insight_cache.config import settings
from insight_cache.entities import EmbeddingRecord, EmbeddingResult
from insight_cache.errors import DimensionMismatchError, ProviderError
from insight_cache.protocols import EmbeddingProvider


def normalize_text(text: str) -> str:
    return " ".join(text.split())


def fingerprint(text: str) -> str:
    """Deterministic cache key for a text.

    Two texts that differ only in whitespace share a fingerprint; any other
    difference, anywhere in the text, produces a different one.
    """
    return hashlib.sha256(normalize_text(text).encode("utf-8")).hexdigest()


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine of the angle between two vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        Similarity in [-1, 1]; 0.0 when either vector has zero norm

    Raises:
        DimensionMismatchError: If the vectors differ in length
    """
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denominator = np.linalg.norm(va) * np.linalg.norm(vb)
    if denominator == 0:
        return 0.0
    similarity = float(np.dot(va, vb) / denominator)
    # Rounding can push identical vectors just past 1
    return max(-1.0, min(1.0, similarity))


class EmbeddingCache:
    """Fingerprint -> EmbeddingRecord store with no expiry."""

    def __init__(self) -> None:
        self._records: dict[str, EmbeddingRecord] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> EmbeddingRecord | None:
        return self._records.get(key)

    def put(self, record: EmbeddingRecord) -> None:
        self._records[record.fingerprint] = record

    def clear(self) -> None:
        self._records.clear()
        self.hits = 0
        self.misses = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def stats(self) -> dict:
        return {
            "size": len(self._records),
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
        }

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records


class EmbeddingService:
    """Deduplicating, batching front for an EmbeddingProvider.

    Example:
        ```python
        service = EmbeddingService(OpenAIEmbeddingProvider.create())
        results = await service.embed_batch(["Grow revenue 20%", "Brand voice: playful"])
        ```
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        cache: EmbeddingCache | None = None,
        batch_size: int | None = None,
    ) -> None:
        """Initialize the embedding service.

        Args:
            provider: Embedding backend (required).
            cache: Shared record cache. A private one is created if omitted.
            batch_size: Maximum texts per provider call. Defaults to settings.
        """
        self._provider = provider
        self._cache = cache if cache is not None else EmbeddingCache()
        self._batch_size = batch_size or settings.embedding_batch_size
        if self._batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._inflight: dict[str, asyncio.Future] = {}

    async def embed(self, text: str) -> EmbeddingResult:
        """Embed a single text, from cache when possible."""
        results = await self.embed_batch([text])
        return results[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Embed many texts, one result per input in input order.

        Chunks are processed one after another. If a provider call fails the
        error propagates; records from chunks that already finished stay cached.

        Raises:
            ProviderError: If a provider call fails
        """
        results: list[EmbeddingResult] = []
        for start in range(0, len(texts), self._batch_size):
            chunk = texts[start : start + self._batch_size]
            results.extend(await self._embed_chunk(chunk))
        return results

    async def _embed_chunk(self, chunk: list[str]) -> list[EmbeddingResult]:
        prints = [fingerprint(text) for text in chunk]

        owned: dict[str, str] = {}
        borrowed: dict[str, asyncio.Future] = {}
        for key, text in zip(prints, chunk):
            if key in self._cache or key in owned or key in borrowed:
                continue
            future = self._inflight.get(key)
            if future is not None:
                borrowed[key] = future
            else:
                owned[key] = text

        if owned:
            await self._compute(owned)

        retry: dict[str, str] = {}
        for key, future in borrowed.items():
            try:
                await asyncio.shield(future)
            except asyncio.CancelledError:
                if not future.cancelled():
                    raise
                # The owning caller was cancelled before finishing
                retry[key] = chunk[prints.index(key)]
        if retry:
            await self._compute(retry)

        results = []
        reported: set[str] = set()
        for key in prints:
            record = self._cache.get(key)
            fresh = key in owned or key in retry
            first = key not in reported
            reported.add(key)
            if fresh and first:
                self._cache.misses += 1
                results.append(EmbeddingResult(vector=record.vector, tokens=record.token_count, cached=False))
            else:
                self._cache.hits += 1
                results.append(EmbeddingResult(vector=record.vector, tokens=0, cached=True))
        return results

    async def _compute(self, pending: dict[str, str]) -> None:
        loop = asyncio.get_running_loop()
        futures = {key: loop.create_future() for key in pending}
        self._inflight.update(futures)
        try:
            try:
                response = await self._provider.embed(list(pending.values()))
            except ProviderError:
                raise
            except Exception as e:
                raise ProviderError(f"Embedding provider failed: {e}") from e

            if len(response.vectors) != len(pending):
                raise ProviderError(
                    f"Provider returned {len(response.vectors)} embeddings for {len(pending)} inputs"
                )

            shares = _split_tokens(response.total_tokens, len(pending))
            for (key, _text), vector, tokens in zip(pending.items(), response.vectors, shares):
                self._cache.put(EmbeddingRecord(fingerprint=key, vector=list(vector), token_count=tokens))
                futures[key].set_result(None)
            logger.debug(f"Cached {len(pending)} new embeddings")
        except ProviderError as e:
            logger.error(f"Embedding batch failed: {e}")
            for future in futures.values():
                if not future.done():
                    future.set_exception(e)
                    future.exception()
            raise
        finally:
            for key, future in futures.items():
                if not future.done():
                    future.cancel()
                if self._inflight.get(key) is future:
                    del self._inflight[key]

    def clear_cache(self) -> None:
        """Drop every cached embedding."""
        self._cache.clear()

    def get_stats(self) -> dict:
        stats = self._cache.stats()
        stats["embedding_model"] = self._provider.model_name
        stats["embedding_dimension"] = self._provider.dimension
        stats["batch_size"] = self._batch_size
        return stats

    async def is_healthy(self) -> bool:
        return await self._provider.is_available()

    @property
    def cache(self) -> EmbeddingCache:
        """Get the underlying record cache (for testing)."""
        return self._cache

    @property
    def provider(self) -> EmbeddingProvider:
        """Get the underlying provider (for testing)."""
        return self._provider


def _split_tokens(total: int, count: int) -> list[int]:
    """Spread a call's token usage over its records, remainder on the first."""
    share, remainder = divmod(total, count)
    return [share + remainder] + [share] * (count - 1)
