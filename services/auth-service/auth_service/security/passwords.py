"""Salted, cost-parameterised password hashing backed by bcrypt."""

from __future__ import annotations

import bcrypt

# bcrypt only consumes the first 72 bytes of a secret.
MAX_SECRET_BYTES = 72

_DUMMY_SECRET = b"auth-service-timing-reference"


class HashingFailure(Exception):
    """Raised when a secret cannot be hashed or a stored hash cannot be checked."""


class PasswordHasher:
    """Hash and verify secrets with a uniform, process-wide cost factor.

    A single bcrypt call cannot be cancelled once started; its duration is
    bounded only by ``rounds``. Each increment doubles the work, so the cost
    must be chosen to keep one hash in the few-hundred-millisecond range on
    production hardware (12 by default).
    """

    def __init__(self, rounds: int = 12) -> None:
        """Validate the cost factor and precompute the timing reference hash."""
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self._rounds = rounds
        self._reference_hash = bcrypt.hashpw(_DUMMY_SECRET, bcrypt.gensalt(rounds=rounds)).decode("ascii")

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, secret: str) -> str:
        """Return the bcrypt encoding of ``secret`` using a fresh random salt."""
        try:
            encoded = secret.encode("utf-8")
            if len(encoded) > MAX_SECRET_BYTES:
                raise ValueError("secret exceeds bcrypt input limit")
            return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("ascii")
        except (ValueError, TypeError, UnicodeError) as exc:
            raise HashingFailure("unable to hash secret") from exc

    def verify(self, secret: str, hashed: str) -> bool:
        """Return ``True`` when ``secret`` matches ``hashed``.

        A malformed stored hash or an over-long secret compares as ``False``;
        ``HashingFailure`` is raised only when the inputs cannot be encoded.
        """
        try:
            secret_bytes = secret.encode("utf-8")
            hashed_bytes = hashed.encode("ascii")
        except (AttributeError, UnicodeError) as exc:
            raise HashingFailure("unable to verify secret") from exc
        try:
            return bcrypt.checkpw(secret_bytes, hashed_bytes)
        except ValueError:
            return False

    def verify_dummy(self, secret: str) -> bool:
        """Spend one verification against the reference hash and return ``False``.

        Used on lookups that found no account so the failure costs the same as
        a password mismatch.
        """
        self.verify(secret, self._reference_hash)
        return False
