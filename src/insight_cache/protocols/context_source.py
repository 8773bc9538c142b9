"""Context source protocol.

The relational store that owns business context rows is outside this
package; only read access is needed.
"""

from typing import Protocol, runtime_checkable

from insight_cache.entities import ContextSnippet, ContextType


@runtime_checkable
class ContextSource(Protocol):
    """Read-only supplier of stored business context."""

    async def list_snippets(
        self,
        owner_id: str,
        types: list[ContextType] | None = None,
    ) -> list[ContextSnippet]:
        """Return the owner's snippets, optionally filtered by type."""
        ...
