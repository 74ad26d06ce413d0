"""SQLAlchemy ORM models."""

from dashsnap.infrastructure.database.models.base import Base
from dashsnap.infrastructure.database.models.search import SearchEntry, SearchEntryToken
from dashsnap.infrastructure.database.models.snapshot import DashboardSnapshot

__all__ = [
    "Base",
    "DashboardSnapshot",
    "SearchEntry",
    "SearchEntryToken",
]
