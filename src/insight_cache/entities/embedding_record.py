"""Embedding domain entities."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EmbeddingRecord:
    """A cached embedding.

    Attributes:
        fingerprint: Digest of the normalized input text
        vector: The embedding vector
        token_count: Provider tokens attributed to this text when it was computed
    """

    fingerprint: str
    vector: list[float]
    token_count: int = 0

    @property
    def dimension(self) -> int:
        return len(self.vector)


@dataclass(frozen=True)
class EmbeddingResult:
    """What a caller of the embedding service gets back.

    ``tokens`` is zero whenever the vector came from the cache.
    """

    vector: list[float]
    tokens: int
    cached: bool
