"""Dashboard snapshot model."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, Index, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column

from dashsnap.config import (
    MAX_SNAPSHOT_KEY_LENGTH,
    MAX_SNAPSHOT_NAME_LENGTH,
    MAX_SNAPSHOT_URL_LENGTH,
)
from dashsnap.domain.snapshots.models import (
    EncryptedContent,
    PlainContent,
    Snapshot,
    SnapshotContent,
)
from dashsnap.infrastructure.database.models.base import Base, BigIntPrimaryKey, JSONDocument


def as_utc(value: datetime) -> datetime:
    """Attach UTC to datetimes read back from backends that drop the zone (SQLite)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class DashboardSnapshot(Base):
    """Persisted snapshot row.

    Exactly one of ``dashboard`` / ``dashboard_encrypted`` is set.
    """

    __tablename__ = "dashboard_snapshots"
    __table_args__ = (
        CheckConstraint(
            "(dashboard IS NULL) <> (dashboard_encrypted IS NULL)",
            name="ck_dashboard_snapshots_single_content",
        ),
        Index("ix_dashboard_snapshots_org_created", "org_id", "created"),
    )

    id: Mapped[int] = mapped_column(BigIntPrimaryKey, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(MAX_SNAPSHOT_NAME_LENGTH), nullable=False)
    key: Mapped[str] = mapped_column(String(MAX_SNAPSHOT_KEY_LENGTH), nullable=False, unique=True)
    delete_key: Mapped[str] = mapped_column(
        String(MAX_SNAPSHOT_KEY_LENGTH), nullable=False, unique=True
    )

    # Ownership, used for listing only. Access is gated by the keys.
    org_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    external: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    external_url: Mapped[str] = mapped_column(
        String(MAX_SNAPSHOT_URL_LENGTH), nullable=False, default=""
    )
    external_delete_url: Mapped[str] = mapped_column(
        String(MAX_SNAPSHOT_URL_LENGTH), nullable=False, default=""
    )

    # NULL means never expires
    expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    dashboard: Mapped[dict[str, Any] | None] = mapped_column(JSONDocument, nullable=True)
    dashboard_encrypted: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)

    @classmethod
    def from_domain(cls, snapshot: Snapshot) -> "DashboardSnapshot":
        row = cls(
            name=snapshot.name,
            key=snapshot.key,
            delete_key=snapshot.delete_key,
            org_id=snapshot.org_id,
            user_id=snapshot.user_id,
            external=snapshot.external,
            external_url=snapshot.external_url,
            external_delete_url=snapshot.external_delete_url,
            expires=snapshot.expires,
            created=snapshot.created,
            updated=snapshot.updated,
            dashboard=snapshot.dashboard,
            dashboard_encrypted=snapshot.dashboard_encrypted,
        )
        if snapshot.id:
            row.id = snapshot.id
        return row

    def to_domain(self) -> Snapshot:
        return Snapshot(
            id=self.id,
            name=self.name,
            key=self.key,
            delete_key=self.delete_key,
            org_id=self.org_id,
            user_id=self.user_id,
            external=self.external,
            external_url=self.external_url,
            external_delete_url=self.external_delete_url,
            expires=as_utc(self.expires) if self.expires is not None else None,
            created=as_utc(self.created),
            updated=as_utc(self.updated),
            content=self._content(),
        )

    def _content(self) -> SnapshotContent:
        if self.dashboard_encrypted is not None:
            return EncryptedContent(self.dashboard_encrypted)
        return PlainContent(self.dashboard or {})
