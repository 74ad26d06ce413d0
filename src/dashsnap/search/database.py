"""Search index stored in the relational database.

Each entry's text is split into normalized tokens kept in a separate table.
A query scores entries by the number of distinct query tokens they contain.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dashsnap.infrastructure.database.models.search import SearchEntry, SearchEntryToken
from dashsnap.search.base import DEFAULT_SEARCH_LIMIT, SearchResult
from dashsnap.shared.exceptions import SearchIndexError
from dashsnap.shared.search_tokens import tokens_from_query, tokens_from_text


class DatabaseSearchIndex:
    """SQL-backed index. Every call runs in its own transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as exc:
            raise SearchIndexError(
                f"Search index {operation} failed",
                details={"operation": operation},
            ) from exc

    async def add(self, text: str, kind: str, uid: str, org_id: int, weight: int = 0) -> None:
        if weight < 0:
            raise SearchIndexError("weight must not be negative", details={"weight": weight})

        async with self._transaction("add") as session:
            await self._delete_entry(session, kind, uid, org_id)

            entry = SearchEntry(text=text, kind=kind, uid=uid, org_id=org_id, weight=weight)
            session.add(entry)
            await session.flush()

            tokens = tokens_from_text(text)
            if tokens:
                await session.execute(
                    insert(SearchEntryToken),
                    [{"entry_id": entry.id, "token": token, "org_id": org_id} for token in tokens],
                )

    async def search(
        self,
        query: str,
        org_id: int,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[SearchResult]:
        tokens = tokens_from_query(query)
        if not tokens:
            return []

        score = func.count(SearchEntryToken.token).label("score")
        matches = (
            select(SearchEntryToken.entry_id, score)
            .where(
                SearchEntryToken.org_id == org_id,
                SearchEntryToken.token.in_(tokens),
            )
            .group_by(SearchEntryToken.entry_id)
            .subquery()
        )
        statement = (
            select(SearchEntry, matches.c.score)
            .join(matches, matches.c.entry_id == SearchEntry.id)
            .where(SearchEntry.org_id == org_id)
            .order_by(matches.c.score.desc(), SearchEntry.weight.desc(), SearchEntry.id.asc())
            .limit(limit)
        )

        async with self._transaction("search") as session:
            result = await session.execute(statement)
            rows = result.all()

        return [
            SearchResult(
                id=entry.id,
                text=entry.text,
                kind=entry.kind,
                uid=entry.uid,
                org_id=entry.org_id,
                weight=entry.weight,
            )
            for entry, _score in rows
        ]

    async def delete(self, kind: str, uid: str, org_id: int) -> None:
        async with self._transaction("delete") as session:
            await self._delete_entry(session, kind, uid, org_id)

    async def close(self) -> None:
        # The engine belongs to the application, not to the index
        return None

    async def _delete_entry(self, session: AsyncSession, kind: str, uid: str, org_id: int) -> None:
        entry_ids = select(SearchEntry.id).where(
            SearchEntry.kind == kind,
            SearchEntry.uid == uid,
            SearchEntry.org_id == org_id,
        )
        # Tokens first: SQLite does not enforce ON DELETE CASCADE by default
        await session.execute(
            delete(SearchEntryToken).where(SearchEntryToken.entry_id.in_(entry_ids))
        )
        await session.execute(
            delete(SearchEntry).where(
                SearchEntry.kind == kind,
                SearchEntry.uid == uid,
                SearchEntry.org_id == org_id,
            )
        )
