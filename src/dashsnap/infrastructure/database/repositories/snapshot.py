"""Dashboard snapshot repository."""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import delete, select

from dashsnap.domain.snapshots.models import DeletedSnapshot, Snapshot
from dashsnap.infrastructure.database.models.snapshot import DashboardSnapshot
from dashsnap.infrastructure.database.repositories.base import BaseRepository


class SnapshotRepository(BaseRepository[DashboardSnapshot]):
    """Repository for dashboard snapshots.

    Reads by key are not organization-scoped: the key itself is the
    capability. Listing is always organization-scoped.
    """

    model_class = DashboardSnapshot

    async def create(self, snapshot: Snapshot) -> Snapshot:
        """Insert a snapshot and return it with its assigned id.

        Raises:
            DuplicateKeyError: If the key or delete key already exists.
            PersistenceError: On any other storage failure.
        """
        async with self.storage_errors("create"):
            row = await self.add(DashboardSnapshot.from_domain(snapshot))
        return row.to_domain()

    async def get_by_key(self, key: str) -> Snapshot | None:
        """Get a snapshot by its read key."""
        query = select(DashboardSnapshot).where(DashboardSnapshot.key == key)
        async with self.storage_errors("get_by_key"):
            result = await self.session.execute(query)
            row = result.scalar_one_or_none()
        return row.to_domain() if row is not None else None

    async def list_for_org(
        self,
        org_id: int,
        *,
        name_prefix: str | None = None,
        limit: int = 1000,
    ) -> Sequence[Snapshot]:
        """List an organization's snapshots, newest first."""
        query = select(DashboardSnapshot).where(DashboardSnapshot.org_id == org_id)
        if name_prefix:
            query = query.where(DashboardSnapshot.name.startswith(name_prefix, autoescape=True))
        query = query.order_by(
            DashboardSnapshot.created.desc(),
            DashboardSnapshot.id.desc(),
        ).limit(limit)

        async with self.storage_errors("list"):
            result = await self.session.execute(query)
            rows = result.scalars().all()
        return [row.to_domain() for row in rows]

    async def delete_by_delete_key(self, delete_key: str) -> DeletedSnapshot | None:
        """Delete the snapshot owning ``delete_key``, if any."""
        statement = (
            delete(DashboardSnapshot)
            .where(DashboardSnapshot.delete_key == delete_key)
            .returning(DashboardSnapshot.key, DashboardSnapshot.org_id)
            .execution_options(synchronize_session=False)
        )
        async with self.storage_errors("delete"):
            result = await self.session.execute(statement)
            row = result.one_or_none()
        if row is None:
            return None
        key, org_id = row
        return DeletedSnapshot(key=key, org_id=org_id)

    async def delete_expired(self, now: datetime) -> list[DeletedSnapshot]:
        """Delete every snapshot with an expiry at or before ``now``.

        A single conditional DELETE, so concurrent sweeps never evaluate
        expiry against a stale read.
        """
        statement = (
            delete(DashboardSnapshot)
            .where(
                DashboardSnapshot.expires.is_not(None),
                DashboardSnapshot.expires <= now,
            )
            .returning(DashboardSnapshot.key, DashboardSnapshot.org_id)
            .execution_options(synchronize_session=False)
        )
        async with self.storage_errors("delete_expired"):
            result = await self.session.execute(statement)
            rows = result.all()
        return [DeletedSnapshot(key=key, org_id=org_id) for key, org_id in rows]
