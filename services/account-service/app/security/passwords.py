"""bcrypt-backed password hashing."""

from __future__ import annotations

import bcrypt

# bcrypt only consumes the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72


def _encode(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:BCRYPT_MAX_BYTES]


class BcryptPasswordHasher:
    """Salted adaptive password hashing with a configurable cost factor."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash(self, plaintext: str) -> str:
        """Return a salted bcrypt digest for ``plaintext``."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(_encode(plaintext), salt).decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        """Return ``True`` when ``plaintext`` matches ``digest``; malformed digests never match."""
        try:
            return bcrypt.checkpw(_encode(plaintext), digest.encode("utf-8"))
        except ValueError:
            return False
