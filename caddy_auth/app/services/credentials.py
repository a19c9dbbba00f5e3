"""
Credential Store

Salted bcrypt hashing for passwords and emailed confirmation codes.
The salt is generated and stored separately from the hash so a hash can be
recomputed deterministically from (plaintext, salt).
"""

import hmac
from typing import Optional, Tuple

import bcrypt

from config import ApplicationConfig

BCRYPT_ROUNDS = ApplicationConfig.BCRYPT_ROUNDS

# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
MAX_SECRET_BYTES = 72


class InvalidSaltError(ValueError):
    """Salt is not a well-formed bcrypt salt"""


class SecretTooLongError(ValueError):
    """Secret exceeds MAX_SECRET_BYTES once UTF-8 encoded"""


def generate_salt(rounds: Optional[int] = None) -> str:
    return bcrypt.gensalt(rounds or BCRYPT_ROUNDS).decode("utf-8")


def hash_password(plaintext: str, salt: Optional[str] = None) -> Tuple[str, str]:
    """
    Hash a secret under a salt.

    Args:
        plaintext: Password or confirmation code
        salt: Existing bcrypt salt; a fresh one is generated when omitted

    Returns:
        Tuple of (hash, salt)

    Raises:
        InvalidSaltError: salt is malformed
        SecretTooLongError: plaintext is longer than bcrypt accepts
    """
    secret = plaintext.encode("utf-8")
    if len(secret) > MAX_SECRET_BYTES:
        raise SecretTooLongError(f"Secret must be at most {MAX_SECRET_BYTES} bytes")

    if salt is None:
        salt = generate_salt()

    try:
        hashed = bcrypt.hashpw(secret, salt.encode("utf-8"))
    except ValueError as e:
        raise InvalidSaltError("Invalid bcrypt salt") from e

    return hashed.decode("utf-8"), salt


def verify_password(plaintext: str, password_hash: str, salt: str) -> bool:
    """
    Recompute the hash of ``plaintext`` under ``salt`` and compare it to
    ``password_hash`` in constant time.

    A wrong secret is an ordinary False. Malformed salts and over-long
    secrets are False as well.
    """
    try:
        computed, _ = hash_password(plaintext, salt)
    except ValueError:
        return False
    return hmac.compare_digest(computed.encode("utf-8"), password_hash.encode("utf-8"))
