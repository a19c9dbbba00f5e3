from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, List, Optional, Sequence


class TokenStoreError(Exception):
    """Base class for token store failures"""


class TokenStoreUnavailable(TokenStoreError):
    """The key-value medium could not be reached or failed the command"""


class TokenConflictError(TokenStoreError):
    """A watched key changed (or was already taken) before the transaction committed"""


class ITokenTransaction(ABC):
    """
    Write set executed all-or-nothing when the ``atomically`` block exits.

    Reads are only allowed on watched keys and only before the first write.
    ``results`` holds one entry per queued command once the block exits.
    """

    results: List[Any]

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Read a watched key before any write is queued"""
        pass

    @abstractmethod
    def set_with_expiry(self, key: str, value: str, ttl: int) -> None:
        """Queue SET key value with a TTL in seconds"""
        pass

    @abstractmethod
    def set_if_absent(self, key: str, value: str) -> None:
        """Queue SET-if-not-exists; its result is a bool"""
        pass

    @abstractmethod
    def expire(self, key: str, ttl: int) -> None:
        """Queue a TTL change; its result is a bool"""
        pass

    @abstractmethod
    def delete(self, *keys: str) -> None:
        """Queue deletion of keys"""
        pass


class ITokenStore(ABC):
    """
    Ephemeral key-value store interface - application layer.

    Implementations raise TokenStoreUnavailable on any failure of the
    underlying medium; they never report a silent success.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def multi_get(self, keys: Sequence[str]) -> List[Optional[str]]:
        pass

    @abstractmethod
    async def set_with_expiry(self, key: str, value: str, ttl: int) -> None:
        pass

    @abstractmethod
    async def set_if_absent(self, key: str, value: str) -> bool:
        pass

    @abstractmethod
    async def expire(self, key: str, ttl: int) -> bool:
        pass

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        pass

    @abstractmethod
    def atomically(self, *watch_keys: str) -> AsyncContextManager[ITokenTransaction]:
        """
        Open a transaction whose queued writes become visible together.

        If any of ``watch_keys`` is modified by someone else before commit,
        nothing is written and TokenConflictError is raised.
        """
        pass
