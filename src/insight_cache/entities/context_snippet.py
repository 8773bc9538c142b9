"""Business context domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ContextType(str, Enum):
    """Kinds of business context a user can store."""

    GOAL = "goal"
    KPI = "kpi"
    BRAND = "brand"
    BUDGET = "budget"
    CAMPAIGN = "campaign"
    INDUSTRY = "industry"


@dataclass(frozen=True)
class ContextSnippet:
    """A stored piece of business context.

    Owned by the external context store; the ranker only reads it.

    Attributes:
        id: Identifier in the external store
        type: The kind of context
        text: The context content that gets embedded
        created_at: When the snippet was stored
        metadata: Optional extra data kept alongside the snippet
    """

    id: str
    type: ContextType
    text: str
    created_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RankedSnippet:
    """A snippet together with its cosine similarity to the query."""

    snippet: ContextSnippet
    similarity: float
