"""OpenAI-compatible embedding provider.

Talks to any server exposing ``POST /embeddings`` with the OpenAI request
shape (OpenAI itself, Azure-style gateways, LiteLLM, vLLM, ...).

Request:
    {"model": "text-embedding-3-small", "input": ["..."], "dimensions": 1536}

Response:
    {"data": [{"index": 0, "embedding": [...]}], "usage": {"total_tokens": 12}}
"""

import httpx
from loguru import logger

from insight_cache.config import settings
from insight_cache.errors import ProviderError
from insight_cache.protocols import ProviderResponse


class OpenAIEmbeddingProvider:
    """OpenAI-compatible implementation of EmbeddingProvider protocol.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = OpenAIEmbeddingProvider.create()
        response = await provider.embed(["Grow Q3 revenue by 20%"])
        print(len(response.vectors[0]))  # 1536
        ```
    """

    def __init__(
        self,
        model_name: str | None = None,
        dimensions: int | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            model_name: Embedding model. Defaults to settings.embedding_model.
            dimensions: Requested vector size. Defaults to settings.embedding_dimensions.
            api_key: Bearer token. Defaults to settings.openai_api_key.
            base_url: API base URL. Defaults to settings.openai_base_url.
            timeout: Request timeout in seconds.
            client: Pre-built HTTP client (tests inject a MockTransport here).
        """
        self._model_name = model_name or settings.embedding_model
        self._dimensions = dimensions or settings.embedding_dimensions
        self._api_key = api_key or settings.openai_api_key
        self._base_url = (base_url or settings.openai_base_url).rstrip("/")
        self._timeout = timeout or settings.embedding_timeout
        self._client = client

    @classmethod
    def create(
        cls,
        model_name: str | None = None,
        dimensions: int | None = None,
    ) -> "OpenAIEmbeddingProvider":
        """Factory method to create OpenAIEmbeddingProvider with defaults.

        Args:
            model_name: Model name. If None, uses settings.
            dimensions: Vector size. If None, uses settings.

        Returns:
            Configured OpenAIEmbeddingProvider
        """
        return cls(model_name=model_name, dimensions=dimensions)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers=headers,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @property
    def dimension(self) -> int:
        return self._dimensions

    @property
    def model_name(self) -> str:
        return self._model_name

    async def embed(self, texts: list[str]) -> ProviderResponse:
        """Embed a batch of texts in a single request.

        Args:
            texts: Texts to embed

        Returns:
            ProviderResponse with vectors ordered like ``texts``

        Raises:
            ProviderError: On HTTP failure or an unexpected payload
        """
        payload = {
            "model": self._model_name,
            "input": texts,
            "dimensions": self._dimensions,
        }

        try:
            response = await self.client.post(f"{self._base_url}/embeddings", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ProviderError(f"Embedding API error: {e}") from e
        except ValueError as e:
            raise ProviderError(f"Embedding API returned invalid JSON: {e}") from e

        try:
            items = sorted(data["data"], key=lambda item: item["index"])
            vectors = [item["embedding"] for item in items]
        except (KeyError, TypeError) as e:
            raise ProviderError(f"Unexpected response format: {data}") from e

        if len(vectors) != len(texts):
            raise ProviderError(f"Provider returned {len(vectors)} embeddings for {len(texts)} inputs")

        total_tokens = int((data.get("usage") or {}).get("total_tokens", 0))
        logger.info(f"Embedded {len(texts)} texts with {self._model_name} ({total_tokens} tokens)")
        return ProviderResponse(vectors=vectors, total_tokens=total_tokens)

    async def is_available(self) -> bool:
        """Check if the embedding API answers a one-word request."""
        try:
            await self.embed(["ping"])
            return True
        except ProviderError:
            return False

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
