from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from caddy_auth.domain.entities import User


class IUserRepository(ABC):
    """User repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        pass

    @abstractmethod
    async def lock_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID, holding a row lock until the transaction ends"""
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        """Get user by username"""
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address"""
        pass

    @abstractmethod
    async def get_by_username_or_email(self, username_or_email: str) -> Optional[User]:
        """Look up by email when the input is a syntactically valid address, else by username"""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user"""
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        """Update existing user"""
        pass

    @abstractmethod
    async def destroy_if_unconfirmed_stale(self, user: User, now: datetime) -> Optional[User]:
        """Delete the user if unconfirmed and stale at ``now``; return None if deleted, else the user"""
        pass

    @abstractmethod
    async def purge_stale_by_username(self, username: str, now: datetime) -> int:
        """Delete the user with this username if unconfirmed and stale. Returns rows deleted."""
        pass

    @abstractmethod
    async def purge_stale_by_email(self, email: str, now: datetime) -> int:
        """Delete the user with this email if unconfirmed and stale. Returns rows deleted."""
        pass
