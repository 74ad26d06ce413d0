"""Snapshot store - core business logic.

Persistence is the system of record. The search index is a best-effort
projection: it is updated after the storage transaction commits, and index
failures are logged and counted but never fail the store operation.
"""

import asyncio
import dataclasses
import hmac
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError

from dashsnap.domain.snapshots.factory import SnapshotFactory
from dashsnap.domain.snapshots.models import (
    SNAPSHOT_KIND,
    CreateSnapshotCommand,
    DeletedSnapshot,
    EncryptedContent,
    PlainContent,
    Snapshot,
)
from dashsnap.domain.snapshots.ports import SnapshotRepositoryPort, TransactionPort
from dashsnap.domain.snapshots.redaction import redact
from dashsnap.observability.metrics import (
    SEARCH_INDEX_ERRORS,
    SNAPSHOTS_CREATED,
    SNAPSHOTS_DELETED,
)
from dashsnap.search.base import SearchIndex
from dashsnap.shared.crypto import SnapshotCipher, is_encrypted
from dashsnap.shared.exceptions import (
    DecryptionError,
    DuplicateKeyError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from dashsnap.shared.logging import get_logger

logger = get_logger(__name__)

MAX_LIST_LIMIT = 1000


def utcnow() -> datetime:
    return datetime.now(UTC)


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class SnapshotStore:
    """Creates, reads, lists and deletes snapshots.

    One store instance wraps one unit of work (repository + transaction).
    """

    def __init__(
        self,
        repository: SnapshotRepositoryPort,
        transaction: TransactionPort,
        search_index: SearchIndex,
        factory: SnapshotFactory | None = None,
        cipher: SnapshotCipher | None = None,
        *,
        index_timeout_seconds: float = 5.0,
        default_list_limit: int = MAX_LIST_LIMIT,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repository = repository
        self.transaction = transaction
        self.search_index = search_index
        self.factory = factory or SnapshotFactory()
        self.cipher = cipher
        self.index_timeout_seconds = index_timeout_seconds
        self.default_list_limit = default_list_limit
        self.clock = clock

    # ----- Create -----

    async def create(self, command: CreateSnapshotCommand, now: datetime | None = None) -> Snapshot:
        """Validate, persist and index a new snapshot.

        A key collision on generated tokens is retried once with fresh tokens.
        Caller-supplied tokens are never replaced.

        Raises:
            ValidationError: If the command is invalid.
            DuplicateKeyError: If the keys still collide after the retry.
            PersistenceError: On storage failure.
            RandomSourceError: If keys cannot be generated.
        """
        now = _to_utc(now or self.clock())
        snapshot = self.factory.build(command, now)

        try:
            stored = await self.repository.create(self._encrypt(snapshot))
        except DuplicateKeyError:
            if command.key and command.delete_key:
                raise
            logger.warning("snapshot_key_collision", org_id=snapshot.org_id)
            self._regenerate_keys(snapshot, command)
            stored = await self.repository.create(self._encrypt(snapshot))

        await self._commit("create")
        # Hand the creator back the content it submitted, not the ciphertext
        created = dataclasses.replace(stored, content=snapshot.content)

        SNAPSHOTS_CREATED.labels(external=str(created.external).lower()).inc()
        logger.info(
            "snapshot_created",
            snapshot_id=created.id,
            org_id=created.org_id,
            user_id=created.user_id,
            external=created.external,
            expires=created.expires.isoformat() if created.expires else None,
        )

        await self._notify_index(
            "add",
            lambda: self.search_index.add(created.name, SNAPSHOT_KIND, created.key, created.org_id, 0),
            uid=created.key,
        )
        return created

    def _regenerate_keys(self, snapshot: Snapshot, command: CreateSnapshotCommand) -> None:
        if not command.key:
            snapshot.key = self.factory.generate_key()
        if not command.delete_key:
            snapshot.delete_key = self.factory.generate_key()
        while snapshot.delete_key == snapshot.key:
            snapshot.delete_key = self.factory.generate_key()

    # ----- Read -----

    async def get_by_key(
        self,
        key: str,
        delete_key: str | None = None,
        include_secrets: bool = False,
    ) -> Snapshot:
        """Get a snapshot by read key.

        If ``delete_key`` is given it must match, otherwise the snapshot is
        reported as not found. Secrets are only returned when
        ``include_secrets`` is set and a matching delete key was presented.

        Raises:
            NotFoundError: If no snapshot matches.
            DecryptionError: If the stored payload cannot be decrypted.
        """
        snapshot = await self.repository.get_by_key(key) if key else None
        if snapshot is None:
            raise NotFoundError("Snapshot")

        verified = False
        if delete_key:
            if not hmac.compare_digest(snapshot.delete_key.encode(), delete_key.encode()):
                raise NotFoundError("Snapshot")
            verified = True

        snapshot = self._decrypt(snapshot)
        if not (include_secrets and verified):
            redact(snapshot)
        return snapshot

    async def list(
        self,
        org_id: int,
        name_prefix: str | None = None,
        limit: int | None = None,
    ) -> Sequence[Snapshot]:
        """List an organization's snapshots, newest first, redacted.

        Content is returned as stored; encrypted payloads are not decrypted
        for listings.
        """
        if limit is None:
            limit = self.default_list_limit
        if limit < 1 or limit > MAX_LIST_LIMIT:
            raise ValidationError(
                f"limit must be between 1 and {MAX_LIST_LIMIT}",
                details={"limit": limit},
            )

        snapshots = await self.repository.list_for_org(org_id, name_prefix=name_prefix, limit=limit)
        return [redact(snapshot) for snapshot in snapshots]

    # ----- Delete -----

    async def delete_by_delete_key(self, delete_key: str) -> bool:
        """Delete the snapshot owning ``delete_key``. Idempotent."""
        if not delete_key:
            return False

        deleted = await self.repository.delete_by_delete_key(delete_key)
        await self._commit("delete")
        if deleted is None:
            return False

        SNAPSHOTS_DELETED.labels(reason="delete_key").inc()
        logger.info("snapshot_deleted", org_id=deleted.org_id)
        await self._remove_from_index([deleted])
        return True

    async def delete_expired(self, now: datetime | None = None) -> int:
        """Delete all snapshots whose expiry is at or before ``now``.

        Safe to run concurrently with itself: a row removed by one sweep is
        simply absent for the next.
        """
        now = _to_utc(now or self.clock())

        deleted = await self.repository.delete_expired(now)
        await self._commit("delete_expired")

        if deleted:
            SNAPSHOTS_DELETED.labels(reason="expired").inc(len(deleted))
            logger.info("expired_snapshots_deleted", count=len(deleted), now=now.isoformat())
            await self._remove_from_index(deleted)
        return len(deleted)

    # ----- Helpers -----

    async def _commit(self, operation: str) -> None:
        try:
            await self.transaction.commit()
        except SQLAlchemyError as exc:
            await self.transaction.rollback()
            logger.error(
                "snapshot_commit_failed", operation=operation, error_type=type(exc).__name__
            )
            raise PersistenceError(operation) from exc

    async def _remove_from_index(self, deleted: Sequence[DeletedSnapshot]) -> None:
        for item in deleted:
            await self._notify_index(
                "delete",
                lambda item=item: self.search_index.delete(SNAPSHOT_KIND, item.key, item.org_id),
                uid=item.key,
            )

    async def _notify_index(
        self,
        operation: str,
        call: Callable[[], Awaitable[None]],
        *,
        uid: str,
    ) -> None:
        """Run an index notification, reporting but never raising failures."""
        try:
            await asyncio.wait_for(call(), timeout=self.index_timeout_seconds)
        except Exception as e:
            SEARCH_INDEX_ERRORS.labels(operation=operation).inc()
            logger.error(
                "search_index_notification_failed",
                operation=operation,
                kind=SNAPSHOT_KIND,
                uid_prefix=uid[:4],
                error_type=type(e).__name__,
            )

    def _encrypt(self, snapshot: Snapshot) -> Snapshot:
        if self.cipher is None or not isinstance(snapshot.content, PlainContent):
            return snapshot
        payload = self.cipher.encrypt(snapshot.content.dashboard)
        return dataclasses.replace(snapshot, content=EncryptedContent(payload))

    def _decrypt(self, snapshot: Snapshot) -> Snapshot:
        payload = snapshot.dashboard_encrypted
        if self.cipher is None or payload is None or not is_encrypted(payload):
            return snapshot
        try:
            dashboard = self.cipher.decrypt(payload)
        except ValueError as exc:
            raise DecryptionError("get_by_key") from exc
        return dataclasses.replace(snapshot, content=PlainContent(dashboard))
