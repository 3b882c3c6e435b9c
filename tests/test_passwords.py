"""
tests/test_passwords.py -- Unit tests for auth/passwords.py.

Covers:
  - hash/verify round trip; wrong password returns False (not an error)
  - digests are salted (same input, different digest) and carry the $2b$ cost
  - a corrupt stored digest raises InvalidCredentialRecord
  - input over bcrypt's 72-byte limit never verifies
"""

from __future__ import annotations

import pytest

from auth.errors import InvalidCredentialRecord
from auth.passwords import MAX_PASSWORD_BYTES, PasswordHasher


def test_verify_accepts_original_password(hasher: PasswordHasher) -> None:
    digest = hasher.hash("correct horse")
    assert hasher.verify("correct horse", digest) is True


@pytest.mark.parametrize("attempt", ["correct hors", "Correct horse", "", "correct horse "])
def test_verify_rejects_other_passwords(hasher: PasswordHasher, attempt: str) -> None:
    digest = hasher.hash("correct horse")
    assert hasher.verify(attempt, digest) is False


def test_hash_is_salted_and_versioned(hasher: PasswordHasher) -> None:
    first = hasher.hash("pw")
    second = hasher.hash("pw")
    assert first != second
    assert first.startswith("$2b$04$")


def test_hash_never_contains_plaintext(hasher: PasswordHasher) -> None:
    assert "hunter22" not in hasher.hash("hunter22")


def test_corrupt_digest_raises_typed_error(hasher: PasswordHasher) -> None:
    with pytest.raises(InvalidCredentialRecord):
        hasher.verify("pw", "not-a-bcrypt-digest")


def test_overlong_password_never_verifies(hasher: PasswordHasher) -> None:
    base = "a" * MAX_PASSWORD_BYTES
    digest = hasher.hash(base)
    assert hasher.verify(base + "b", digest) is False


def test_burn_does_not_raise(hasher: PasswordHasher) -> None:
    hasher.burn("anything")
