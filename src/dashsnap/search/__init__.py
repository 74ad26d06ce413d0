"""Pluggable full-text search.

Set SEARCH_BACKEND to "database" (default) or "memory".
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dashsnap.config import Settings
from dashsnap.search.base import DEFAULT_SEARCH_LIMIT, SearchIndex, SearchResult
from dashsnap.search.database import DatabaseSearchIndex
from dashsnap.search.memory import InMemorySearchIndex


def build_search_index(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> SearchIndex:
    """Build the configured search index."""
    if settings.search_backend == "memory":
        return InMemorySearchIndex()
    return DatabaseSearchIndex(session_factory)


__all__ = [
    "DEFAULT_SEARCH_LIMIT",
    "DatabaseSearchIndex",
    "InMemorySearchIndex",
    "SearchIndex",
    "SearchResult",
    "build_search_index",
]
