"""FastAPI dependencies for API routes."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from dashsnap.config import get_settings
from dashsnap.domain.snapshots.store import SnapshotStore
from dashsnap.infrastructure.database.connection import SessionDep, get_session_factory
from dashsnap.infrastructure.snapshot_store import build_snapshot_store
from dashsnap.search import SearchIndex, build_search_index


@dataclass(frozen=True)
class Caller:
    """Organization and user of the current request.

    Authentication happens upstream; the gateway forwards the verified ids
    as headers.
    """

    org_id: int
    user_id: int


async def get_caller(
    x_org_id: Annotated[int | None, Header()] = None,
    x_user_id: Annotated[int | None, Header()] = None,
) -> Caller:
    """Dependency to get the calling organization and user."""
    if x_org_id is None or x_user_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return Caller(org_id=x_org_id, user_id=x_user_id)


def get_search_index(request: Request) -> SearchIndex:
    """Get the search index shared by the application."""
    index = getattr(request.app.state, "search_index", None)
    if index is None:
        index = build_search_index(get_settings(), get_session_factory())
        request.app.state.search_index = index
    return index


async def get_snapshot_store(
    session: SessionDep,
    search_index: Annotated[SearchIndex, Depends(get_search_index)],
) -> SnapshotStore:
    """Get a snapshot store bound to the request's session."""
    return build_snapshot_store(session, search_index, get_settings())


CallerDep = Annotated[Caller, Depends(get_caller)]
SearchIndexDep = Annotated[SearchIndex, Depends(get_search_index)]
SnapshotStoreDep = Annotated[SnapshotStore, Depends(get_snapshot_store)]
