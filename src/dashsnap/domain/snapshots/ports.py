"""Ports for snapshot store dependencies."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from dashsnap.domain.snapshots.models import DeletedSnapshot, Snapshot


class SnapshotRepositoryPort(Protocol):
    """Repository interface for snapshots."""

    async def create(self, snapshot: Snapshot) -> Snapshot:
        """Persist a snapshot and return it with its assigned id."""

    async def get_by_key(self, key: str) -> Snapshot | None:
        """Get a snapshot by read key."""

    async def list_for_org(
        self,
        org_id: int,
        *,
        name_prefix: str | None = None,
        limit: int = 1000,
    ) -> Sequence[Snapshot]:
        """List an organization's snapshots, newest first."""

    async def delete_by_delete_key(self, delete_key: str) -> DeletedSnapshot | None:
        """Delete at most one snapshot by delete key."""

    async def delete_expired(self, now: datetime) -> list[DeletedSnapshot]:
        """Delete all snapshots expired at ``now``."""


class TransactionPort(Protocol):
    """Transaction boundary of the unit of work (an AsyncSession)."""

    async def commit(self) -> None:
        """Commit the current transaction."""

    async def rollback(self) -> None:
        """Roll back the current transaction."""
