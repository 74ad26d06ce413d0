"""Full-text search index models.

Primary access pattern:
- org_id + token -> entry ids
"""

from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from dashsnap.infrastructure.database.models.base import Base, BigIntPrimaryKey


class SearchEntry(Base):
    """One indexed entity, unique per (kind, uid, org_id)."""

    __tablename__ = "search_entries"
    __table_args__ = (UniqueConstraint("kind", "uid", "org_id", name="uq_search_entries_kind_uid_org"),)

    id: Mapped[int] = mapped_column(BigIntPrimaryKey, primary_key=True, autoincrement=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    kind: Mapped[str] = mapped_column(String(40), nullable=False)
    uid: Mapped[str] = mapped_column(String(190), nullable=False)
    org_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    weight: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class SearchEntryToken(Base):
    """Normalized token occurring in a search entry's text."""

    __tablename__ = "search_entry_tokens"
    __table_args__ = (Index("ix_search_entry_tokens_org_token", "org_id", "token"),)

    entry_id: Mapped[int] = mapped_column(
        BigIntPrimaryKey,
        ForeignKey("search_entries.id", ondelete="CASCADE"),
        primary_key=True,
    )
    token: Mapped[str] = mapped_column(String(128), primary_key=True)
    org_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
