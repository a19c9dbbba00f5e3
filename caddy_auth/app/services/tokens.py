"""Random secrets for confirmation and reset cycles."""

import secrets

from pydantic import BaseModel

# Candidate url tokens drawn before giving up on a collision streak
MAX_URL_TOKEN_ATTEMPTS = 8

TOKEN_BYTES = 16


class TokenCollisionError(Exception):
    """Every candidate url token collided with a live one"""


def generate_token() -> str:
    """32 hex chars from the OS CSPRNG"""
    return secrets.token_hex(TOKEN_BYTES)


class TokenPair(BaseModel):
    """Secrets handed to the mailer; only their hashes are ever stored"""

    confirm_token: str
    url_token: str
