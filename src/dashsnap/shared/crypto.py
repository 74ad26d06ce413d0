"""Encryption at rest for snapshot dashboards.

Uses Fernet symmetric encryption with a key derived from APP_SECRET_KEY.
The dashboard document is serialized to JSON and stored as the Fernet token
bytes.
"""

import base64
import hashlib
import json
import logging
from functools import lru_cache
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from dashsnap.config import get_settings

logger = logging.getLogger(__name__)


# Known default/placeholder values that should never be used for encryption
_INSECURE_DEFAULT_KEYS = {
    "change-this-to-a-random-secret-key",
    "change-me-in-production",
    "",
}


@lru_cache(maxsize=1)
def _get_fernet() -> Fernet:
    """Get Fernet instance with derived key from APP_SECRET_KEY.

    Fernet requires a 32-byte base64-encoded key.
    We derive it from APP_SECRET_KEY using SHA256.
    """
    secret = get_settings().app_secret_key

    if not secret or secret in _INSECURE_DEFAULT_KEYS:
        raise ValueError(
            "APP_SECRET_KEY must be configured for snapshot encryption. "
            "Generate a secure key with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""
        )

    # Domain-separated so that other features deriving from the same secret get distinct keys
    derived_key = hashlib.sha256(f"dashsnap:snapshot-content:{secret}".encode()).digest()
    return Fernet(base64.urlsafe_b64encode(derived_key))


class SnapshotCipher:
    """Encrypts and decrypts dashboard documents."""

    def __init__(self, fernet: Fernet | None = None) -> None:
        self._fernet = fernet or _get_fernet()

    def encrypt(self, dashboard: dict[str, Any]) -> bytes:
        """Serialize and encrypt a dashboard document."""
        plaintext = json.dumps(dashboard, separators=(",", ":"), sort_keys=True)
        return self._fernet.encrypt(plaintext.encode("utf-8"))

    def decrypt(self, payload: bytes) -> dict[str, Any]:
        """Decrypt and deserialize a dashboard document.

        Raises:
            ValueError: If decryption fails (wrong key, corrupted data) or the
                plaintext is not a JSON object.
        """
        try:
            plaintext = self._fernet.decrypt(payload)
        except InvalidToken as e:
            logger.error("Failed to decrypt snapshot - invalid token or wrong key")
            raise ValueError("Snapshot decryption failed - possibly wrong key") from e

        document = json.loads(plaintext.decode("utf-8"))
        if not isinstance(document, dict):
            raise ValueError("Decrypted snapshot is not a JSON object")
        return document


def is_encrypted(value: bytes | None) -> bool:
    """Check if a value looks like a Fernet token.

    Fernet tokens start with 'gAAAAA' (base64 of version byte + timestamp).
    """
    if not value:
        return False
    return value.startswith(b"gAAAAA")
