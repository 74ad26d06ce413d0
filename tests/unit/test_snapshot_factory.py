"""Unit tests for snapshot command validation and construction."""

import random
from datetime import UTC, datetime, timedelta

import pytest

from dashsnap.config import MAX_SNAPSHOT_EXPIRES_SECONDS
from dashsnap.domain.snapshots.factory import SnapshotFactory, validate_command
from dashsnap.domain.snapshots.models import (
    DEFAULT_SNAPSHOT_NAME,
    CreateSnapshotCommand,
    EncryptedContent,
    PlainContent,
)
from dashsnap.domain.snapshots.redaction import redact
from dashsnap.shared.exceptions import ValidationError
from dashsnap.shared.keys import KeyGenerator

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
DASHBOARD = {"title": "Latency", "panels": []}


def command(**overrides) -> CreateSnapshotCommand:
    fields = {"org_id": 1, "user_id": 10, "dashboard": DASHBOARD}
    fields.update(overrides)
    return CreateSnapshotCommand(**fields)


class RepeatingKeyGenerator(KeyGenerator):
    """Returns queued tokens, then falls back to random ones."""

    def __init__(self, tokens: list[str]) -> None:
        super().__init__(random.Random(7))
        self.tokens = list(tokens)

    def generate(self, length: int = 32) -> str:
        if self.tokens:
            return self.tokens.pop(0)
        return super().generate(length)


class TestValidateCommand:
    """Test rejection of invalid create commands."""

    def test_dashboard_required(self):
        with pytest.raises(ValidationError, match="dashboard required"):
            validate_command(command(dashboard=None))

    def test_encrypted_payload_satisfies_dashboard(self):
        validate_command(command(dashboard=None, dashboard_encrypted=b"gAAAAApayload"))

    def test_empty_dashboard_document_is_accepted(self):
        validate_command(command(dashboard={}))

    def test_negative_expires_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_command(command(expires_seconds=-1))

        assert exc_info.value.details == {"expires": -1}

    def test_external_requires_key(self):
        with pytest.raises(ValidationError, match="key required"):
            validate_command(command(external=True, delete_key="d" * 32))

    def test_external_requires_delete_key(self):
        with pytest.raises(ValidationError, match="deleteKey required"):
            validate_command(command(external=True, key="k" * 32))

    def test_supplied_keys_must_differ(self):
        with pytest.raises(ValidationError, match="must differ"):
            validate_command(command(key="same" * 8, delete_key="same" * 8))

    def test_expires_beyond_maximum_rejected(self):
        with pytest.raises(ValidationError, match="expires too large") as exc_info:
            validate_command(command(expires_seconds=400_000_000_000))

        assert exc_info.value.details["max"] == MAX_SNAPSHOT_EXPIRES_SECONDS

    def test_expires_at_maximum_builds(self):
        snapshot = SnapshotFactory().build(
            command(expires_seconds=MAX_SNAPSHOT_EXPIRES_SECONDS), NOW
        )

        assert snapshot.expires == NOW + timedelta(seconds=MAX_SNAPSHOT_EXPIRES_SECONDS)

    @pytest.mark.parametrize(
        ("field", "overrides"),
        [
            ("name", {"name": "n" * 256}),
            ("key", {"key": "k" * 191, "delete_key": "d" * 32}),
            ("deleteKey", {"key": "k" * 32, "delete_key": "d" * 191}),
            ("externalUrl", {"external_url": "https://x.example/" + "u" * 240}),
            ("externalDeleteUrl", {"external_delete_url": "https://x.example/" + "u" * 240}),
        ],
    )
    def test_overlong_fields_rejected(self, field, overrides):
        with pytest.raises(ValidationError, match=f"{field} must be at most") as exc_info:
            validate_command(command(**overrides))

        assert exc_info.value.details["field"] == field
        assert "k" * 32 not in str(exc_info.value.details)

    def test_fields_at_column_width_accepted(self):
        validate_command(command(name="n" * 255, key="k" * 190, delete_key="d" * 190))


class TestSnapshotFactory:
    """Test building snapshots from commands."""

    def test_defaults_applied(self):
        snapshot = SnapshotFactory().build(command(), NOW)

        assert snapshot.id == 0
        assert snapshot.name == DEFAULT_SNAPSHOT_NAME
        assert snapshot.created == NOW
        assert snapshot.updated == NOW
        assert snapshot.expires is None
        assert snapshot.external is False
        assert isinstance(snapshot.content, PlainContent)
        assert snapshot.dashboard == DASHBOARD

    def test_generated_keys_are_distinct_and_long(self):
        snapshot = SnapshotFactory().build(command(), NOW)

        assert len(snapshot.key) == 32
        assert len(snapshot.delete_key) == 32
        assert snapshot.key != snapshot.delete_key

    def test_configured_key_length(self):
        snapshot = SnapshotFactory(key_length=48).build(command(), NOW)

        assert len(snapshot.key) == 48
        assert len(snapshot.delete_key) == 48

    def test_expiry_is_relative_to_now(self):
        snapshot = SnapshotFactory().build(command(expires_seconds=3600), NOW)

        assert snapshot.expires == NOW + timedelta(hours=1)

    def test_supplied_keys_are_kept(self):
        snapshot = SnapshotFactory().build(command(key="k" * 32, delete_key="d" * 32), NOW)

        assert snapshot.key == "k" * 32
        assert snapshot.delete_key == "d" * 32

    def test_generated_delete_key_never_equals_key(self):
        generator = RepeatingKeyGenerator(["a" * 32, "a" * 32, "a" * 32])

        snapshot = SnapshotFactory(key_generator=generator).build(command(), NOW)

        assert snapshot.key == "a" * 32
        assert snapshot.delete_key != snapshot.key

    def test_generated_delete_key_differs_from_supplied_key(self):
        generator = RepeatingKeyGenerator(["k" * 32])

        snapshot = SnapshotFactory(key_generator=generator).build(command(key="k" * 32), NOW)

        assert snapshot.delete_key != "k" * 32

    def test_external_urls_kept_for_external_snapshots(self):
        snapshot = SnapshotFactory().build(
            command(
                external=True,
                key="k" * 32,
                delete_key="d" * 32,
                external_url="https://snapshots.example.com/k",
                external_delete_url="https://snapshots.example.com/delete/d",
            ),
            NOW,
        )

        assert snapshot.external is True
        assert snapshot.external_url == "https://snapshots.example.com/k"
        assert snapshot.external_delete_url == "https://snapshots.example.com/delete/d"

    def test_external_urls_dropped_for_local_snapshots(self):
        snapshot = SnapshotFactory().build(
            command(external_url="https://elsewhere.example.com"),
            NOW,
        )

        assert snapshot.external_url == ""
        assert snapshot.external_delete_url == ""

    def test_encrypted_payload_becomes_encrypted_content(self):
        snapshot = SnapshotFactory().build(
            command(dashboard=None, dashboard_encrypted=b"gAAAAAciphertext"),
            NOW,
        )

        assert snapshot.content == EncryptedContent(b"gAAAAAciphertext")
        assert snapshot.dashboard is None
        assert snapshot.dashboard_encrypted == b"gAAAAAciphertext"

    def test_is_expired(self):
        snapshot = SnapshotFactory().build(command(expires_seconds=60), NOW)

        assert snapshot.is_expired(NOW) is False
        assert snapshot.is_expired(NOW + timedelta(seconds=60)) is True

    def test_without_expiry_never_expires(self):
        snapshot = SnapshotFactory().build(command(), NOW)

        assert snapshot.is_expired(NOW + timedelta(days=36500)) is False


class TestRedaction:
    """Test removal of delete capabilities."""

    def test_redact_clears_delete_capabilities(self):
        snapshot = SnapshotFactory().build(
            command(
                external=True,
                key="k" * 32,
                delete_key="d" * 32,
                external_url="https://snapshots.example.com/k",
                external_delete_url="https://snapshots.example.com/delete/d",
            ),
            NOW,
        )

        redacted = redact(snapshot)

        assert redacted.delete_key == ""
        assert redacted.external_delete_url == ""
        assert redacted.key == "k" * 32
        assert redacted.external_url == "https://snapshots.example.com/k"
