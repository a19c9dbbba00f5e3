"""
Unit tests for the Credential Store

Covers:
- Hashing is deterministic for a given (plaintext, salt)
- A fresh salt is generated when none is supplied
- verify_password accepts the right secret and rejects everything else
"""

import pytest

from caddy_auth.app.services.credentials import (
    InvalidSaltError,
    SecretTooLongError,
    generate_salt,
    hash_password,
    verify_password,
)


def test_hash_is_deterministic_for_same_salt():
    """Same plaintext and salt always produce the same hash"""
    salt = generate_salt()

    first_hash, first_salt = hash_password("hunter2hunter2", salt)
    second_hash, second_salt = hash_password("hunter2hunter2", salt)

    assert first_hash == second_hash
    assert first_salt == second_salt == salt


def test_fresh_salt_per_call():
    """Omitting the salt draws a new one each time"""
    hash_a, salt_a = hash_password("hunter2hunter2")
    hash_b, salt_b = hash_password("hunter2hunter2")

    assert salt_a != salt_b
    assert hash_a != hash_b
    assert len(salt_a) == 29
    assert len(hash_a) == 60


def test_verify_password_round_trip():
    """The original secret verifies, a different one does not"""
    password_hash, salt = hash_password("correct horse battery")

    assert verify_password("correct horse battery", password_hash, salt) is True
    assert verify_password("correct horse batterz", password_hash, salt) is False


def test_verify_password_with_wrong_salt():
    """A hash is only reproducible under its own salt"""
    password_hash, _ = hash_password("correct horse battery")
    other_salt = generate_salt()

    assert verify_password("correct horse battery", password_hash, other_salt) is False


def test_verify_password_malformed_salt_is_false():
    password_hash, _ = hash_password("correct horse battery")

    assert verify_password("correct horse battery", password_hash, "not-a-salt") is False


def test_hash_password_rejects_malformed_salt():
    with pytest.raises(InvalidSaltError):
        hash_password("correct horse battery", "not-a-salt")


def test_hash_password_rejects_secret_over_72_bytes():
    """Multibyte characters count by their encoded length"""
    with pytest.raises(SecretTooLongError):
        hash_password("é" * 37)


def test_unicode_secret_round_trip():
    password_hash, salt = hash_password("pässwörd-ß-密码")

    assert verify_password("pässwörd-ß-密码", password_hash, salt) is True
