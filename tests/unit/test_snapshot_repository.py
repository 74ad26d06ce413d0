"""Unit tests for the snapshot repository."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from dashsnap.domain.snapshots.models import DeletedSnapshot, EncryptedContent, PlainContent, Snapshot
from dashsnap.infrastructure.database.models.snapshot import DashboardSnapshot, as_utc
from dashsnap.infrastructure.database.repositories.snapshot import SnapshotRepository
from dashsnap.shared.exceptions import DuplicateKeyError, PersistenceError

CREATED = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def snapshot(key: str, delete_key: str, **overrides) -> Snapshot:
    fields = {
        "name": "Latency",
        "key": key,
        "delete_key": delete_key,
        "org_id": 1,
        "user_id": 10,
        "content": PlainContent({"title": "Latency"}),
        "created": CREATED,
        "updated": CREATED,
    }
    fields.update(overrides)
    return Snapshot(**fields)


class TestSnapshotRepository:
    """Test snapshot persistence."""

    @pytest.mark.asyncio
    async def test_create_and_get_by_key(self, async_session):
        repo = SnapshotRepository(async_session)

        created = await repo.create(snapshot("k" * 32, "d" * 32))
        await async_session.commit()
        fetched = await repo.get_by_key("k" * 32)

        assert created.id > 0
        assert fetched is not None
        assert fetched.id == created.id
        assert fetched.content == PlainContent({"title": "Latency"})
        assert fetched.created == CREATED
        assert fetched.created.tzinfo is not None

    @pytest.mark.asyncio
    async def test_get_by_id(self, async_session):
        repo = SnapshotRepository(async_session)
        created = await repo.create(snapshot("k" * 32, "d" * 32))

        row = await repo.get_by_id(created.id)

        assert isinstance(row, DashboardSnapshot)
        assert row.key == "k" * 32

    @pytest.mark.asyncio
    async def test_get_by_key_missing(self, async_session):
        assert await SnapshotRepository(async_session).get_by_key("nope") is None

    @pytest.mark.asyncio
    async def test_encrypted_content_round_trip(self, async_session):
        repo = SnapshotRepository(async_session)
        await repo.create(
            snapshot("k" * 32, "d" * 32, content=EncryptedContent(b"gAAAAAopaque"))
        )
        await async_session.commit()

        fetched = await repo.get_by_key("k" * 32)

        assert fetched is not None
        assert fetched.content == EncryptedContent(b"gAAAAAopaque")

    @pytest.mark.asyncio
    async def test_duplicate_delete_key_raises(self, async_session):
        repo = SnapshotRepository(async_session)
        await repo.create(snapshot("k" * 32, "d" * 32))
        await async_session.commit()

        with pytest.raises(DuplicateKeyError):
            await repo.create(snapshot("x" * 32, "d" * 32))

    @pytest.mark.asyncio
    async def test_delete_by_delete_key_returns_identity(self, async_session):
        repo = SnapshotRepository(async_session)
        await repo.create(snapshot("k" * 32, "d" * 32))
        await async_session.commit()

        deleted = await repo.delete_by_delete_key("d" * 32)
        await async_session.commit()

        assert deleted == DeletedSnapshot(key="k" * 32, org_id=1)
        assert await repo.delete_by_delete_key("d" * 32) is None

    @pytest.mark.asyncio
    async def test_delete_expired_skips_snapshots_without_expiry(self, async_session):
        repo = SnapshotRepository(async_session)
        await repo.create(snapshot("a" * 32, "b" * 32, expires=CREATED + timedelta(minutes=5)))
        await repo.create(snapshot("c" * 32, "e" * 32))
        await async_session.commit()

        deleted = await repo.delete_expired(CREATED + timedelta(days=1))

        assert deleted == [DeletedSnapshot(key="a" * 32, org_id=1)]


class TestStorageErrors:
    """Storage failures are translated and logged without bound parameters."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("operation", "call"),
        [
            ("get_by_key", lambda repo, token: repo.get_by_key(token)),
            ("delete", lambda repo, token: repo.delete_by_delete_key(token)),
        ],
    )
    async def test_failure_log_omits_token(self, operation, call):
        token = "SECRETREADKEY" + "x" * 19
        session = AsyncMock()
        session.execute.side_effect = OperationalError(
            "SELECT * FROM dashboard_snapshots WHERE key = ?",
            (token,),
            Exception("no such table: dashboard_snapshots"),
        )
        repo = SnapshotRepository(session)

        with patch("dashsnap.infrastructure.database.repositories.base.logger") as mock_logger:
            with pytest.raises(PersistenceError) as exc_info:
                await call(repo, token)

        session.rollback.assert_awaited_once()
        assert exc_info.value.details == {"operation": operation}
        mock_logger.error.assert_called_once_with(
            "storage_error", operation=operation, error_type="OperationalError"
        )
        assert "SECRETREADKEY" not in str(mock_logger.mock_calls)

    @pytest.mark.asyncio
    async def test_integrity_failure_log_omits_token(self):
        token = "SECRETREADKEY" + "x" * 19
        session = AsyncMock()
        session.add = MagicMock()
        session.flush.side_effect = IntegrityError(
            "INSERT INTO dashboard_snapshots (key) VALUES (?)",
            (token,),
            Exception("CHECK constraint failed: ck_dashboard_snapshots_single_content"),
        )
        repo = SnapshotRepository(session)

        with patch("dashsnap.infrastructure.database.repositories.base.logger") as mock_logger:
            with pytest.raises(PersistenceError) as exc_info:
                await repo.create(snapshot(token, "d" * 32))

        assert not isinstance(exc_info.value, DuplicateKeyError)
        mock_logger.error.assert_called_once_with(
            "storage_integrity_error", operation="create", error_type="Exception"
        )
        assert "SECRETREADKEY" not in str(mock_logger.mock_calls)


class TestAsUtc:
    """Test timezone normalization of stored datetimes."""

    def test_naive_is_treated_as_utc(self):
        assert as_utc(datetime(2026, 3, 1, 12, 0)) == CREATED

    def test_aware_is_converted(self):
        from datetime import timezone

        offset = timezone(timedelta(hours=2))

        assert as_utc(datetime(2026, 3, 1, 14, 0, tzinfo=offset)) == CREATED
