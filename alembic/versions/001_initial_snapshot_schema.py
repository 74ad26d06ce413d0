"""Dashboard snapshots and full-text search index.

Revision ID: 001_initial_snapshot_schema
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic
revision: str = "001_initial_snapshot_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "dashboard_snapshots",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("key", sa.String(length=190), nullable=False),
        sa.Column("delete_key", sa.String(length=190), nullable=False),
        sa.Column("org_id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("external", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("external_url", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("external_delete_url", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated", sa.DateTime(timezone=True), nullable=False),
        sa.Column("dashboard", postgresql.JSONB(none_as_null=True), nullable=True),
        sa.Column("dashboard_encrypted", sa.LargeBinary(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key"),
        sa.UniqueConstraint("delete_key"),
        sa.CheckConstraint(
            "(dashboard IS NULL) <> (dashboard_encrypted IS NULL)",
            name="ck_dashboard_snapshots_single_content",
        ),
    )
    # Org-scoped listing, newest first
    op.create_index(
        "ix_dashboard_snapshots_org_created",
        "dashboard_snapshots",
        ["org_id", "created"],
    )
    # Expiry sweep
    op.create_index(
        "ix_dashboard_snapshots_expires",
        "dashboard_snapshots",
        ["expires"],
    )

    op.create_table(
        "search_entries",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("kind", sa.String(length=40), nullable=False),
        sa.Column("uid", sa.String(length=190), nullable=False),
        sa.Column("org_id", sa.BigInteger(), nullable=False),
        sa.Column("weight", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("kind", "uid", "org_id", name="uq_search_entries_kind_uid_org"),
    )
    op.create_index("ix_search_entries_org_id", "search_entries", ["org_id"])

    op.create_table(
        "search_entry_tokens",
        sa.Column("entry_id", sa.BigInteger(), nullable=False),
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column("org_id", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("entry_id", "token"),
        sa.ForeignKeyConstraint(["entry_id"], ["search_entries.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_search_entry_tokens_org_token",
        "search_entry_tokens",
        ["org_id", "token"],
    )


def downgrade() -> None:
    op.drop_index("ix_search_entry_tokens_org_token", table_name="search_entry_tokens")
    op.drop_table("search_entry_tokens")
    op.drop_index("ix_search_entries_org_id", table_name="search_entries")
    op.drop_table("search_entries")
    op.drop_index("ix_dashboard_snapshots_expires", table_name="dashboard_snapshots")
    op.drop_index("ix_dashboard_snapshots_org_created", table_name="dashboard_snapshots")
    op.drop_table("dashboard_snapshots")
