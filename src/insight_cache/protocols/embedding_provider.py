"""Embedding provider protocol.

Defines the interface for any embedding generation service that can
convert a batch of texts to vectors in a single call.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ProviderResponse:
    """Vectors in input order plus the token usage billed for the call."""

    vectors: list[list[float]]
    total_tokens: int = 0


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding generation services."""

    @property
    def dimension(self) -> int:
        """Return the dimension of the embedding vectors."""
        ...

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model."""
        ...

    async def embed(self, texts: list[str]) -> ProviderResponse:
        """Embed every text in one provider call.

        Args:
            texts: Texts to embed (never empty)

        Returns:
            ProviderResponse with one vector per text, in input order

        Raises:
            ProviderError: If the call fails or returns a malformed payload
        """
        ...

    async def is_available(self) -> bool:
        """Check if the provider is reachable."""
        ...
