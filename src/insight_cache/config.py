import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis (durable tier)
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Cache
    cache_namespace: str = os.getenv("CACHE_NAMESPACE", "lytics")
    cache_default_ttl: int = int(os.getenv("CACHE_DEFAULT_TTL", "300"))  # 5 minutes
    cache_max_background: int = int(os.getenv("CACHE_MAX_BACKGROUND", "4"))

    # Embedding provider (OpenAI compatible)
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    embedding_model: str = os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")
    embedding_dimensions: int = int(os.getenv("OPENAI_EMBEDDING_DIMENSIONS", "1536"))
    embedding_batch_size: int = int(os.getenv("EMBEDDING_BATCH_SIZE", "100"))
    embedding_timeout: float = float(os.getenv("EMBEDDING_TIMEOUT", "30"))

    # Context retrieval
    rag_top_k: int = int(os.getenv("RAG_TOP_K", "5"))
    rag_similarity_threshold: float = float(os.getenv("RAG_SIMILARITY_THRESHOLD", "0.7"))

    # Confidence gating
    confidence_show_threshold: float = float(os.getenv("CONFIDENCE_SHOW_THRESHOLD", "0.5"))
    confidence_high_threshold: float = float(os.getenv("CONFIDENCE_HIGH_THRESHOLD", "0.8"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str | None = os.getenv("LOG_FILE")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "false").lower() == "true"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.cache_default_ttl <= 0:
            raise ValueError("CACHE_DEFAULT_TTL must be a positive number of seconds")

        if self.cache_max_background < 1:
            raise ValueError("CACHE_MAX_BACKGROUND must be at least 1")

        if not 1 <= self.embedding_batch_size <= 2048:
            raise ValueError(
                f"EMBEDDING_BATCH_SIZE must be between 1 and 2048, got {self.embedding_batch_size}"
            )

        if self.embedding_dimensions <= 0:
            raise ValueError("OPENAI_EMBEDDING_DIMENSIONS must be positive")

        if not -1 <= self.rag_similarity_threshold <= 1:
            raise ValueError("RAG_SIMILARITY_THRESHOLD must be between -1 and 1 for cosine similarity")

        if not 0 <= self.confidence_show_threshold <= self.confidence_high_threshold <= 1:
            raise ValueError(
                "Confidence thresholds must satisfy 0 <= CONFIDENCE_SHOW_THRESHOLD "
                "<= CONFIDENCE_HIGH_THRESHOLD <= 1"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
    )
