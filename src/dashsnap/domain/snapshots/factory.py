"""Snapshot creation: validation, defaults and key assignment."""

from datetime import datetime, timedelta

from dashsnap.config import (
    MAX_SNAPSHOT_EXPIRES_SECONDS,
    MAX_SNAPSHOT_KEY_LENGTH,
    MAX_SNAPSHOT_NAME_LENGTH,
    MAX_SNAPSHOT_URL_LENGTH,
    MIN_SNAPSHOT_KEY_LENGTH,
)
from dashsnap.domain.snapshots.models import (
    DEFAULT_SNAPSHOT_NAME,
    CreateSnapshotCommand,
    EncryptedContent,
    PlainContent,
    Snapshot,
    SnapshotContent,
)
from dashsnap.shared.exceptions import ValidationError
from dashsnap.shared.keys import KeyGenerator


def _check_length(field: str, value: str, max_length: int) -> None:
    if len(value) > max_length:
        raise ValidationError(
            f"{field} must be at most {max_length} characters",
            details={"field": field, "max_length": max_length},
        )


def validate_command(command: CreateSnapshotCommand) -> None:
    """Reject commands that can never produce a valid snapshot."""
    if command.dashboard is None and not command.dashboard_encrypted:
        raise ValidationError("dashboard required")

    if command.expires_seconds < 0:
        raise ValidationError(
            "expires must not be negative",
            details={"expires": command.expires_seconds},
        )
    if command.expires_seconds > MAX_SNAPSHOT_EXPIRES_SECONDS:
        raise ValidationError(
            "expires too large",
            details={"expires": command.expires_seconds, "max": MAX_SNAPSHOT_EXPIRES_SECONDS},
        )

    # Details never echo the values: key and deleteKey are capabilities
    _check_length("name", command.name, MAX_SNAPSHOT_NAME_LENGTH)
    _check_length("key", command.key, MAX_SNAPSHOT_KEY_LENGTH)
    _check_length("deleteKey", command.delete_key, MAX_SNAPSHOT_KEY_LENGTH)
    _check_length("externalUrl", command.external_url, MAX_SNAPSHOT_URL_LENGTH)
    _check_length("externalDeleteUrl", command.external_delete_url, MAX_SNAPSHOT_URL_LENGTH)

    if command.external:
        if not command.key:
            raise ValidationError("key required for external snapshot")
        if not command.delete_key:
            raise ValidationError("deleteKey required for external snapshot")

    if command.key and command.key == command.delete_key:
        raise ValidationError("deleteKey must differ from key")


class SnapshotFactory:
    """Builds fully populated, not yet persisted snapshots."""

    def __init__(
        self,
        key_generator: KeyGenerator | None = None,
        key_length: int = MIN_SNAPSHOT_KEY_LENGTH,
    ) -> None:
        self.key_generator = key_generator or KeyGenerator()
        self.key_length = key_length

    def build(self, command: CreateSnapshotCommand, now: datetime) -> Snapshot:
        """Validate ``command`` and materialize a snapshot created at ``now``.

        Raises:
            ValidationError: If the command is invalid.
            RandomSourceError: If keys must be generated and the random source fails.
        """
        validate_command(command)

        expires = None
        if command.expires_seconds != 0:
            expires = now + timedelta(seconds=command.expires_seconds)

        key = command.key or self.generate_key()
        delete_key = command.delete_key or self.generate_key()
        while delete_key == key:
            # Only reachable with generated keys, supplied pairs are validated above
            delete_key = self.generate_key()

        return Snapshot(
            id=0,
            name=command.name or DEFAULT_SNAPSHOT_NAME,
            key=key,
            delete_key=delete_key,
            org_id=command.org_id,
            user_id=command.user_id,
            external=command.external,
            external_url=command.external_url if command.external else "",
            external_delete_url=command.external_delete_url if command.external else "",
            expires=expires,
            created=now,
            updated=now,
            content=_content_from_command(command),
        )

    def generate_key(self) -> str:
        return self.key_generator.generate(self.key_length)


def _content_from_command(command: CreateSnapshotCommand) -> SnapshotContent:
    if command.dashboard is not None:
        return PlainContent(command.dashboard)
    assert command.dashboard_encrypted is not None
    return EncryptedContent(command.dashboard_encrypted)
