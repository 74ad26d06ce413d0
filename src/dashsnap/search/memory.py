"""Process-local search index for development and tests."""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass

from dashsnap.search.base import DEFAULT_SEARCH_LIMIT, SearchResult, rank_key
from dashsnap.shared.exceptions import SearchIndexError
from dashsnap.shared.search_tokens import tokens_from_query, tokens_from_text


@dataclass
class _Entry:
    result: SearchResult
    tokens: frozenset[str]


class InMemorySearchIndex:
    """Dict-backed index. State is lost when the process exits."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str, int], _Entry] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()
        self._closed = False

    async def add(self, text: str, kind: str, uid: str, org_id: int, weight: int = 0) -> None:
        self._check_open()
        if weight < 0:
            raise SearchIndexError("weight must not be negative", details={"weight": weight})
        async with self._lock:
            key = (kind, uid, org_id)
            previous = self._entries.get(key)
            entry_id = previous.result.id if previous else next(self._ids)
            self._entries[key] = _Entry(
                result=SearchResult(
                    id=entry_id,
                    text=text,
                    kind=kind,
                    uid=uid,
                    org_id=org_id,
                    weight=weight,
                ),
                tokens=frozenset(tokens_from_text(text)),
            )

    async def search(
        self,
        query: str,
        org_id: int,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[SearchResult]:
        self._check_open()
        query_tokens = set(tokens_from_query(query))
        if not query_tokens:
            return []

        async with self._lock:
            scored = [
                (len(entry.tokens & query_tokens), entry.result)
                for entry in self._entries.values()
                if entry.result.org_id == org_id
            ]

        matches = [(score, result) for score, result in scored if score > 0]
        matches.sort(key=lambda item: rank_key(item[0], item[1].weight, item[1].id))
        return [result for _, result in matches[:limit]]

    async def delete(self, kind: str, uid: str, org_id: int) -> None:
        self._check_open()
        async with self._lock:
            self._entries.pop((kind, uid, org_id), None)

    async def close(self) -> None:
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise SearchIndexError("search index is closed")
