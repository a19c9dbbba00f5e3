"""
Signup confirmation tokens

Each pending confirmation cycle lives in the token store as four co-keyed
entries with their own TTLs:

- ``signup_confirmation_url_token:<url_token>`` -> username
- ``signup_confirmation_token_hash:<username>`` -> bcrypt hash of the code
- ``signup_confirmation_token_salt:<username>`` -> salt of that hash
- ``signup_confirmation_email:<username>`` -> cooldown marker for resends

The confirm token (emailed code) proves receipt of the message; the url
token only identifies which pending cycle a submission belongs to.
"""

import logging
from typing import Callable, Optional

from caddy_auth.app.services.credentials import hash_password, verify_password
from caddy_auth.app.services.token_store import ITokenStore, TokenConflictError
from caddy_auth.app.services.tokens import (
    MAX_URL_TOKEN_ATTEMPTS,
    TokenCollisionError,
    TokenPair,
    generate_token,
)

logger = logging.getLogger(__name__)

SIGNUP_CONFIRMATION_LIFESPAN_IN_SEC = 60 * 60
SIGNUP_CONFIRMATION_EMAIL_COOLDOWN_IN_SEC = 5 * 60


def url_token_key(url_token: str) -> str:
    return f"signup_confirmation_url_token:{url_token}"


def token_hash_key(username: str) -> str:
    return f"signup_confirmation_token_hash:{username}"


def token_salt_key(username: str) -> str:
    return f"signup_confirmation_token_salt:{username}"


def cooldown_key(username: str) -> str:
    return f"signup_confirmation_email:{username}"


class ConfirmationTokens:
    """
    Issue, check and clear signup confirmation cycles.

    Raises TokenStoreUnavailable from every method when the store is down,
    and TokenCollisionError from ``issue`` when MAX_URL_TOKEN_ATTEMPTS
    candidates all collided.
    """

    def __init__(
        self,
        store: ITokenStore,
        token_factory: Callable[[], str] = generate_token,
        lifespan: int = SIGNUP_CONFIRMATION_LIFESPAN_IN_SEC,
        cooldown: int = SIGNUP_CONFIRMATION_EMAIL_COOLDOWN_IN_SEC,
    ):
        self.store = store
        self.token_factory = token_factory
        self.lifespan = lifespan
        self.cooldown = cooldown

    async def issue(
        self,
        username: str,
        confirm_token: Optional[str] = None,
        confirm_token_salt: Optional[str] = None,
    ) -> TokenPair:
        """
        Start a confirmation cycle for ``username``.

        The cooldown marker, url token, hash and salt are written in one
        transaction. A url token that is already live is discarded and a
        new candidate drawn. A second cycle for the same username
        overwrites the hash and salt of the first.
        """
        confirm_token = confirm_token or generate_token()
        confirm_token_hash, confirm_token_salt = hash_password(
            confirm_token, confirm_token_salt
        )

        for attempt in range(1, MAX_URL_TOKEN_ATTEMPTS + 1):
            url_token = self.token_factory()
            if url_token == confirm_token:
                continue
            key = url_token_key(url_token)
            try:
                async with self.store.atomically(key) as tx:
                    if await tx.get(key) is not None:
                        raise TokenConflictError(f"url token already live (attempt {attempt})")
                    tx.set_with_expiry(cooldown_key(username), "1", self.cooldown)
                    tx.set_if_absent(key, username)
                    tx.expire(key, self.lifespan)
                    tx.set_with_expiry(token_hash_key(username), confirm_token_hash, self.lifespan)
                    tx.set_with_expiry(token_salt_key(username), confirm_token_salt, self.lifespan)
            except TokenConflictError as e:
                logger.warning(f"Signup confirmation url token collision for {username}: {e}")
                continue

            set_status, expire_status = tx.results[1], tx.results[2]
            if set_status and expire_status:
                return TokenPair(confirm_token=confirm_token, url_token=url_token)
            logger.warning(f"Signup confirmation url token was not claimed for {username}")

        raise TokenCollisionError(
            f"Could not draw a free url token in {MAX_URL_TOKEN_ATTEMPTS} attempts"
        )

    async def recently_sent(self, username: str) -> bool:
        return await self.store.get(cooldown_key(username)) is not None

    async def username_for(self, url_token: str) -> Optional[str]:
        return await self.store.get(url_token_key(url_token))

    async def check_confirm_token(self, username: str, confirm_token: str) -> Optional[bool]:
        """
        Compare a submitted code against the stored hash.

        Returns None when the hash or salt has lapsed, else whether the
        code matches.
        """
        token_hash, token_salt = await self.store.multi_get(
            [token_hash_key(username), token_salt_key(username)]
        )
        if token_hash is None or token_salt is None:
            return None
        return verify_password(confirm_token, token_hash, token_salt)

    async def consume(self, username: str) -> None:
        """Spend the code of a confirmed cycle; the url token lapses on its own TTL."""
        async with self.store.atomically() as tx:
            tx.delete(token_hash_key(username), token_salt_key(username), cooldown_key(username))

    async def clear(self, url_token: str) -> None:
        """Delete every key belonging to the cycle ``url_token`` points at."""
        username = await self.store.get(url_token_key(url_token))
        async with self.store.atomically() as tx:
            if username is None:
                tx.delete(url_token_key(url_token))
            else:
                tx.delete(
                    url_token_key(url_token),
                    cooldown_key(username),
                    token_hash_key(username),
                    token_salt_key(username),
                )
