"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .cache_entry import CacheEntryEntity
from .confidence import ConfidenceFactors, ConfidenceLevel, ConfidenceResult
from .context_snippet import ContextSnippet, ContextType, RankedSnippet
from .embedding_record import EmbeddingRecord, EmbeddingResult

__all__ = [
    "CacheEntryEntity",
    "ConfidenceFactors",
    "ConfidenceLevel",
    "ConfidenceResult",
    "ContextSnippet",
    "ContextType",
    "RankedSnippet",
    "EmbeddingRecord",
    "EmbeddingResult",
]
