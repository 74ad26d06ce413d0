"""Repository pattern implementations for database access."""

from dashsnap.infrastructure.database.repositories.base import BaseRepository
from dashsnap.infrastructure.database.repositories.snapshot import SnapshotRepository

__all__ = [
    "BaseRepository",
    "SnapshotRepository",
]
