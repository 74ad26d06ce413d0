"""Snapshot API routes.

Reads and deletes are authorized by the capability tokens in the path, not
by the caller's organization. Creating and listing require a caller.
"""

from fastapi import APIRouter, Query

from dashsnap.api.deps import CallerDep, SnapshotStoreDep
from dashsnap.api.schemas import (
    CreateSnapshotRequest,
    CreateSnapshotResponse,
    DeleteSnapshotResponse,
    SnapshotListResponse,
    SnapshotMetaResponse,
    SnapshotResponse,
)
from dashsnap.config import get_settings
from dashsnap.domain.snapshots.models import Snapshot
from dashsnap.domain.snapshots.store import MAX_LIST_LIMIT

router = APIRouter(tags=["Snapshots"])


def _snapshot_urls(snapshot: Snapshot) -> tuple[str, str]:
    if snapshot.external:
        return snapshot.external_url, snapshot.external_delete_url
    base_url = get_settings().snapshot_public_url.rstrip("/")
    return (
        f"{base_url}/dashboard/snapshot/{snapshot.key}",
        f"{base_url}/api/snapshots-delete/{snapshot.delete_key}",
    )


@router.post("/snapshots", response_model=CreateSnapshotResponse)
async def create_snapshot(
    body: CreateSnapshotRequest,
    caller: CallerDep,
    store: SnapshotStoreDep,
) -> CreateSnapshotResponse:
    """Create a snapshot of a dashboard.

    The delete key is only ever returned here; keep it to delete the snapshot.
    """
    snapshot = await store.create(body.to_command(caller.org_id, caller.user_id))
    url, delete_url = _snapshot_urls(snapshot)

    return CreateSnapshotResponse(
        id=snapshot.id,
        key=snapshot.key,
        delete_key=snapshot.delete_key,
        url=url,
        delete_url=delete_url,
        expires=snapshot.expires,
    )


@router.get("/snapshots/{key}", response_model=SnapshotResponse)
async def get_snapshot(
    key: str,
    store: SnapshotStoreDep,
    delete_key: str | None = Query(None),
) -> SnapshotResponse:
    """Get a snapshot by key. Presenting the delete key reveals secret fields."""
    snapshot = await store.get_by_key(key, delete_key=delete_key, include_secrets=bool(delete_key))
    return SnapshotResponse.from_snapshot(snapshot)


@router.delete("/snapshots-delete/{delete_key}", response_model=DeleteSnapshotResponse)
async def delete_snapshot(delete_key: str, store: SnapshotStoreDep) -> DeleteSnapshotResponse:
    """Delete a snapshot by its delete key. Deleting twice is not an error."""
    deleted = await store.delete_by_delete_key(delete_key)
    return DeleteSnapshotResponse(deleted=deleted)


@router.get("/dashboard/snapshots", response_model=SnapshotListResponse)
async def list_snapshots(
    caller: CallerDep,
    store: SnapshotStoreDep,
    query: str | None = Query(None, description="Name prefix"),
    limit: int | None = Query(
        None, ge=1, le=MAX_LIST_LIMIT, description="Defaults to SNAPSHOT_LIST_DEFAULT_LIMIT"
    ),
) -> SnapshotListResponse:
    """List the caller's organization's snapshots, newest first."""
    if limit is None:
        limit = store.default_list_limit
    snapshots = await store.list(caller.org_id, name_prefix=query, limit=limit)
    return SnapshotListResponse(
        items=[SnapshotMetaResponse.from_snapshot(s) for s in snapshots],
        limit=limit,
    )
