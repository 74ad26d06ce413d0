"""Base repository with storage error translation."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Generic, TypeVar, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dashsnap.shared.exceptions import DuplicateKeyError, PersistenceError
from dashsnap.shared.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _is_unique_violation(exc: IntegrityError) -> bool:
    # sqlite: "UNIQUE constraint failed", postgres: "duplicate key value violates unique constraint"
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message


class BaseRepository(Generic[T]):
    """Base repository bound to a single session.

    Storage exceptions never leave a repository unwrapped: they are
    translated to ``PersistenceError`` (or ``DuplicateKeyError``) carrying the
    operation name, never the row.
    """

    model_class: type[T]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @asynccontextmanager
    async def storage_errors(self, operation: str) -> AsyncIterator[None]:
        """Translate SQLAlchemy errors raised inside the block."""
        try:
            yield
        except IntegrityError as exc:
            await self.session.rollback()
            if _is_unique_violation(exc):
                raise DuplicateKeyError(operation) from exc
            logger.error(
                "storage_integrity_error",
                operation=operation,
                error_type=type(exc.orig).__name__,
            )
            raise PersistenceError(operation) from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("storage_error", operation=operation, error_type=type(exc).__name__)
            raise PersistenceError(operation) from exc

    async def get_by_id(self, id: int) -> T | None:
        """Get entity by primary key."""
        async with self.storage_errors("get_by_id"):
            return cast(T | None, await self.session.get(cast(Any, self.model_class), id))

    async def add(self, entity: T) -> T:
        """Insert a new entity and load its generated columns."""
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity
