"""Wiring of a snapshot store onto a database session."""

from sqlalchemy.ext.asyncio import AsyncSession

from dashsnap.config import Settings
from dashsnap.domain.snapshots.factory import SnapshotFactory
from dashsnap.domain.snapshots.store import SnapshotStore
from dashsnap.infrastructure.database.repositories.snapshot import SnapshotRepository
from dashsnap.search.base import SearchIndex
from dashsnap.shared.crypto import SnapshotCipher


def build_snapshot_store(
    session: AsyncSession,
    search_index: SearchIndex,
    settings: Settings,
) -> SnapshotStore:
    """Build a store whose unit of work is ``session``."""
    return SnapshotStore(
        repository=SnapshotRepository(session),
        transaction=session,
        search_index=search_index,
        factory=SnapshotFactory(key_length=settings.snapshot_key_length),
        cipher=SnapshotCipher() if settings.snapshot_encryption_enabled else None,
        index_timeout_seconds=settings.search_index_timeout_seconds,
        default_list_limit=settings.snapshot_list_default_limit,
    )
