"""Capability token generation for snapshot keys.

Snapshot keys are bearer tokens: whoever holds the key can read the snapshot,
whoever holds the delete key can delete it. Tokens are drawn from the OS
entropy source only.
"""

import random
import secrets
import string

from dashsnap.config import MIN_SNAPSHOT_KEY_LENGTH
from dashsnap.shared.exceptions import RandomSourceError

KEY_ALPHABET = string.ascii_letters + string.digits


class KeyGenerator:
    """Generates random alphanumeric tokens."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or secrets.SystemRandom()

    def generate(self, length: int = MIN_SNAPSHOT_KEY_LENGTH) -> str:
        """Return a random token of ``length`` alphanumeric characters.

        Raises:
            ValueError: If ``length`` is below the minimum token length.
            RandomSourceError: If the entropy source cannot be read.
        """
        if length < MIN_SNAPSHOT_KEY_LENGTH:
            raise ValueError(f"key length must be at least {MIN_SNAPSHOT_KEY_LENGTH}")
        try:
            return "".join(self._rng.choice(KEY_ALPHABET) for _ in range(length))
        except (OSError, NotImplementedError) as exc:
            raise RandomSourceError("generate_key") from exc
