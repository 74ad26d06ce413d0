"""Custom exception hierarchy for dashsnap."""

from typing import Any


class DashSnapError(Exception):
    """Base exception for all dashsnap errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ----- Input Errors -----


class ValidationError(DashSnapError):
    """Input validation failed."""

    pass


class NotFoundError(DashSnapError):
    """No matching record, or a capability token did not match.

    Both cases produce the same error so that callers cannot probe for the
    existence of a snapshot with a wrong delete key.
    """

    def __init__(self, resource: str) -> None:
        super().__init__(
            message=f"{resource} not found",
            details={"resource": resource},
        )


# ----- Storage Errors -----


class PersistenceError(DashSnapError):
    """Storage layer failure. Transient, safe to retry."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        super().__init__(
            message=message or f"Storage failure during {operation}",
            details={"operation": operation},
        )


class DuplicateKeyError(PersistenceError):
    """A snapshot key or delete key already exists."""

    def __init__(self, operation: str = "create") -> None:
        super().__init__(operation, message="Snapshot key already exists")


class DecryptionError(PersistenceError):
    """An encrypted snapshot payload could not be decrypted."""

    def __init__(self, operation: str) -> None:
        super().__init__(operation, message="Failed to decrypt snapshot payload")


class RandomSourceError(DashSnapError):
    """The secure random source is unavailable. Snapshots cannot be created."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            message="Secure random source unavailable",
            details={"operation": operation},
        )


# ----- Search Errors -----


class SearchIndexError(DashSnapError):
    """Search index operation failed. Never fails the originating store call."""

    pass
