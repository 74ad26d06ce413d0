"""Snapshot domain types.

A snapshot holds its dashboard either as a plain document or as an encrypted
payload, never both. ``SnapshotContent`` makes that a tagged variant.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeAlias

DashboardDocument: TypeAlias = dict[str, Any]

SNAPSHOT_KIND = "snapshot"
DEFAULT_SNAPSHOT_NAME = "Unnamed snapshot"


@dataclass(frozen=True)
class PlainContent:
    """Dashboard stored as a structured document."""

    dashboard: DashboardDocument


@dataclass(frozen=True)
class EncryptedContent:
    """Dashboard stored as an encrypted payload."""

    payload: bytes


SnapshotContent: TypeAlias = PlainContent | EncryptedContent


@dataclass
class Snapshot:
    """A dashboard at a specific point in time."""

    name: str
    key: str
    delete_key: str
    org_id: int
    user_id: int
    content: SnapshotContent
    created: datetime
    updated: datetime
    expires: datetime | None = None
    external: bool = False
    external_url: str = ""
    external_delete_url: str = ""
    id: int = 0

    @property
    def dashboard(self) -> DashboardDocument | None:
        if isinstance(self.content, PlainContent):
            return self.content.dashboard
        return None

    @property
    def dashboard_encrypted(self) -> bytes | None:
        if isinstance(self.content, EncryptedContent):
            return self.content.payload
        return None

    def is_expired(self, now: datetime) -> bool:
        """A snapshot without expiry never expires."""
        return self.expires is not None and self.expires <= now


@dataclass
class CreateSnapshotCommand:
    """Request to create a snapshot.

    ``key`` and ``delete_key`` are optional for snapshots hosted here and
    mandatory for external ones, where the external host owns revocation.
    """

    org_id: int
    user_id: int
    dashboard: DashboardDocument | None = None
    dashboard_encrypted: bytes | None = None
    name: str = ""
    expires_seconds: int = 0
    external: bool = False
    external_url: str = ""
    external_delete_url: str = ""
    key: str = ""
    delete_key: str = ""


@dataclass(frozen=True)
class DeletedSnapshot:
    """Identity of a removed snapshot, enough to drop it from the search index."""

    key: str
    org_id: int
