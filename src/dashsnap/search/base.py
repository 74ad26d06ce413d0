"""Search index contract.

Implementations receive their storage handle through the constructor. The
snapshot store only ever talks to this interface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

DEFAULT_SEARCH_LIMIT = 50


@dataclass(frozen=True)
class SearchResult:
    """A queryable projection of an indexed entity."""

    id: int
    text: str
    kind: str
    uid: str
    org_id: int
    weight: int = 0


class SearchIndex(Protocol):
    """Full-text index keyed by ``(kind, uid, org_id)``."""

    async def add(self, text: str, kind: str, uid: str, org_id: int, weight: int = 0) -> None:
        """Index ``text``, replacing any prior entry for the same key."""

    async def search(
        self,
        query: str,
        org_id: int,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[SearchResult]:
        """Return the organization's entries ranked by relevance, then weight."""

    async def delete(self, kind: str, uid: str, org_id: int) -> None:
        """Remove an entry. No-op if absent."""

    async def close(self) -> None:
        """Release resources held by the index."""


def rank_key(score: int, weight: int, entry_id: int) -> tuple[int, int, int]:
    """Sort key shared by all implementations: score desc, weight desc, id asc."""
    return (-score, -weight, entry_id)
