"""API request and response schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from dashsnap.config import (
    MAX_SNAPSHOT_EXPIRES_SECONDS,
    MAX_SNAPSHOT_KEY_LENGTH,
    MAX_SNAPSHOT_NAME_LENGTH,
    MAX_SNAPSHOT_URL_LENGTH,
)
from dashsnap.domain.snapshots.models import CreateSnapshotCommand, Snapshot
from dashsnap.search.base import SearchResult


class APIRequestModel(BaseModel):
    """Base model for request bodies.

    Forbids unknown fields to avoid silently accepting typos or outdated clients.
    """

    model_config = ConfigDict(extra="forbid")


# ----- Snapshots -----


class CreateSnapshotRequest(APIRequestModel):
    """Create snapshot request body."""

    name: str = Field(default="", max_length=MAX_SNAPSHOT_NAME_LENGTH)
    expires: int = Field(
        default=0,
        le=MAX_SNAPSHOT_EXPIRES_SECONDS,
        description="Seconds until expiry, 0 for never",
    )
    external: bool = False
    external_url: str = Field(default="", max_length=MAX_SNAPSHOT_URL_LENGTH)
    external_delete_url: str = Field(default="", max_length=MAX_SNAPSHOT_URL_LENGTH)
    key: str = Field(default="", max_length=MAX_SNAPSHOT_KEY_LENGTH)
    delete_key: str = Field(default="", max_length=MAX_SNAPSHOT_KEY_LENGTH)
    dashboard: dict[str, Any] | None = None

    def to_command(self, org_id: int, user_id: int) -> CreateSnapshotCommand:
        return CreateSnapshotCommand(
            org_id=org_id,
            user_id=user_id,
            dashboard=self.dashboard,
            name=self.name,
            expires_seconds=self.expires,
            external=self.external,
            external_url=self.external_url,
            external_delete_url=self.external_delete_url,
            key=self.key,
            delete_key=self.delete_key,
        )


class CreateSnapshotResponse(BaseModel):
    """Returned once to the creator; the only response carrying the delete key."""

    id: int
    key: str
    delete_key: str
    url: str
    delete_url: str
    expires: datetime | None


class SnapshotMetaResponse(BaseModel):
    """Snapshot metadata without the dashboard document."""

    id: int
    name: str
    key: str
    org_id: int
    user_id: int
    external: bool
    external_url: str
    expires: datetime | None
    created: datetime
    updated: datetime

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "SnapshotMetaResponse":
        return cls(
            id=snapshot.id,
            name=snapshot.name,
            key=snapshot.key,
            org_id=snapshot.org_id,
            user_id=snapshot.user_id,
            external=snapshot.external,
            external_url=snapshot.external_url,
            expires=snapshot.expires,
            created=snapshot.created,
            updated=snapshot.updated,
        )


class SnapshotResponse(SnapshotMetaResponse):
    """Full snapshot. Secret fields are empty unless the delete key was verified."""

    delete_key: str = ""
    external_delete_url: str = ""
    dashboard: dict[str, Any] | None = None

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "SnapshotResponse":
        meta = SnapshotMetaResponse.from_snapshot(snapshot)
        return cls(
            **meta.model_dump(),
            delete_key=snapshot.delete_key,
            external_delete_url=snapshot.external_delete_url,
            dashboard=snapshot.dashboard,
        )


class SnapshotListResponse(BaseModel):
    items: list[SnapshotMetaResponse]
    limit: int


class DeleteSnapshotResponse(BaseModel):
    deleted: bool


# ----- Search -----


class SearchResultResponse(BaseModel):
    id: int
    text: str
    kind: str
    uid: str
    weight: int

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchResultResponse":
        return cls(
            id=result.id,
            text=result.text,
            kind=result.kind,
            uid=result.uid,
            weight=result.weight,
        )


class SearchResponse(BaseModel):
    query: str
    results: list[SearchResultResponse]
