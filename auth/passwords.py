"""
auth/passwords.py -- bcrypt password hashing and verification.

Using bcrypt directly rather than passlib[bcrypt]: passlib's wrap-bug
detection builds a password longer than 72 bytes, which current bcrypt
releases reject with an explicit error.

The cost factor is fixed per process (Settings.bcrypt_rounds) and every
digest is produced with the $2b$ prefix, so the stored string records both
the algorithm version and the cost it was hashed with.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

import bcrypt

from auth.errors import HashingError, InvalidCredentialRecord

logger = logging.getLogger("authsvc.auth")

# bcrypt only looks at the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72

_PREFIX = b"2b"


class PasswordHasher:
    """Hash and verify passwords at a fixed bcrypt cost.

    Usage:
        hasher = PasswordHasher(rounds=12)
        digest = hasher.hash("s3cret")
        hasher.verify("s3cret", digest)  # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        # Timing equalization dummy. Computed once so the first failed login
        # is not measurably slower than later ones.
        self._dummy_hash = self.hash("authsvc_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a salted bcrypt digest of plain.

        Raises HashingError if bcrypt fails (entropy or resource exhaustion,
        or input over the 72-byte limit that the API layer already rejects).
        """
        try:
            salt = bcrypt.gensalt(rounds=self.rounds, prefix=_PREFIX)
            return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")
        except (ValueError, TypeError) as exc:
            raise HashingError(detail=str(exc)) from exc

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if plain matches the stored digest.

        bcrypt.checkpw compares in constant time. A mismatch returns False.
        A digest bcrypt cannot parse raises InvalidCredentialRecord so the
        caller can tell data corruption apart from a wrong password.
        """
        encoded = plain.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
        except ValueError as exc:
            raise InvalidCredentialRecord(detail=str(exc)) from exc

    def burn(self, plain: str) -> None:
        """Spend one verification's worth of work against the dummy digest.

        Called when the account or its secret does not exist, so response
        time does not reveal whether an email is registered.
        """
        self.verify(plain, self._dummy_hash)
