"""Token store backed by Redis."""

import logging
from contextlib import asynccontextmanager
from functools import wraps
from typing import AsyncIterator, List, Optional, Sequence

from redis.asyncio import Redis
from redis.asyncio.client import Pipeline
from redis.exceptions import RedisError, WatchError

from caddy_auth.app.services.token_store import (
    ITokenStore,
    ITokenTransaction,
    TokenConflictError,
    TokenStoreUnavailable,
)

logger = logging.getLogger(__name__)


def _unavailable_on_error(func):
    """Translate any Redis failure into TokenStoreUnavailable."""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except RedisError as e:
            logger.error(f"Token store {func.__name__} failed: {e}")
            raise TokenStoreUnavailable(f"{func.__name__} failed: {e}") from e

    return wrapper


class RedisTokenTransaction(ITokenTransaction):
    """MULTI/EXEC write set on a (possibly watching) pipeline"""

    def __init__(self, pipe: Pipeline, watched: Sequence[str]):
        self._pipe = pipe
        self._watched = set(watched)
        self.queued = False
        self.results = []

    async def get(self, key: str) -> Optional[str]:
        if self.queued:
            raise RuntimeError("Reads must happen before any write is queued")
        if key not in self._watched:
            raise RuntimeError(f"Key {key!r} must be watched to be read in a transaction")
        return await self._pipe.get(key)

    def _queue(self) -> None:
        if not self.queued:
            self._pipe.multi()
            self.queued = True

    def set_with_expiry(self, key: str, value: str, ttl: int) -> None:
        self._queue()
        self._pipe.set(key, value, ex=ttl)

    def set_if_absent(self, key: str, value: str) -> None:
        self._queue()
        self._pipe.setnx(key, value)

    def expire(self, key: str, ttl: int) -> None:
        self._queue()
        self._pipe.expire(key, ttl)

    def delete(self, *keys: str) -> None:
        self._queue()
        self._pipe.delete(*keys)


class RedisTokenStore(ITokenStore):
    """
    Manages the Redis connection used for ephemeral tokens.

    The Redis client is safe to share between requests; connections are
    taken from its pool when a command executes.
    """

    def __init__(self, client: Redis):
        self.redis = client

    @classmethod
    def from_url(cls, url: str, socket_timeout: Optional[float] = None) -> "RedisTokenStore":
        logger.debug(f"New Redis client for {url}")
        client = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    @_unavailable_on_error
    async def get(self, key: str) -> Optional[str]:
        return await self.redis.get(key)

    @_unavailable_on_error
    async def multi_get(self, keys: Sequence[str]) -> List[Optional[str]]:
        return await self.redis.mget(list(keys))

    @_unavailable_on_error
    async def set_with_expiry(self, key: str, value: str, ttl: int) -> None:
        await self.redis.set(key, value, ex=ttl)

    @_unavailable_on_error
    async def set_if_absent(self, key: str, value: str) -> bool:
        return bool(await self.redis.setnx(key, value))

    @_unavailable_on_error
    async def expire(self, key: str, ttl: int) -> bool:
        return bool(await self.redis.expire(key, ttl))

    @_unavailable_on_error
    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self.redis.delete(*keys)

    @asynccontextmanager
    async def atomically(self, *watch_keys: str) -> AsyncIterator[RedisTokenTransaction]:
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                if watch_keys:
                    await pipe.watch(*watch_keys)
                transaction = RedisTokenTransaction(pipe, watch_keys)
                yield transaction
                if transaction.queued:
                    transaction.results = await pipe.execute()
        except WatchError as e:
            raise TokenConflictError(f"Watched keys changed: {', '.join(watch_keys)}") from e
        except RedisError as e:
            logger.error(f"Token store transaction failed: {e}")
            raise TokenStoreUnavailable(f"transaction failed: {e}") from e

    async def close(self) -> None:
        await self.redis.aclose()
