import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, delete, or_
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from caddy_auth.app.repositories.user_repository import IUserRepository
from caddy_auth.domain.entities import PasswordResetRequest, User
from caddy_auth.domain.entities.user import INACTIVITY_WINDOW
from caddy_auth.domain.validation import is_valid_email

logger = logging.getLogger(__name__)


def unconfirmed_stale_clause(now: datetime):
    """SQL form of User.is_unconfirmed_stale(now)"""
    confirmation = col(User.signup_confirmation_time)
    return and_(
        or_(confirmation.is_(None), confirmation > now),
        col(User.signup_time) < now - INACTIVITY_WINDOW,
    )


class UserRepository(IUserRepository):
    """User repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        stmt = select(User).where(User.id == user_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def lock_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID under SELECT ... FOR UPDATE (ignored by SQLite)"""
        stmt = (
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        """Get user by username"""
        stmt = select(User).where(User.username == username)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address"""
        stmt = select(User).where(User.email == email)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_username_or_email(self, username_or_email: str) -> Optional[User]:
        if is_valid_email(username_or_email):
            return await self.get_by_email(username_or_email)
        return await self.get_by_username(username_or_email)

    async def create(self, user: User) -> User:
        """Create a new user"""
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update(self, user: User) -> User:
        """Update existing user"""
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def _delete_stale(self, where, now: datetime) -> int:
        """Delete unconfirmed stale users matching ``where`` along with their reset requests"""
        condition = and_(where, unconfirmed_stale_clause(now))
        await self.session.execute(
            delete(PasswordResetRequest).where(
                col(PasswordResetRequest.user_id).in_(select(User.id).where(condition))
            ).execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(User).where(condition).execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount

    async def destroy_if_unconfirmed_stale(self, user: User, now: datetime) -> Optional[User]:
        if not user.is_unconfirmed_stale(now):
            return user

        deleted = await self._delete_stale(User.id == user.id, now)
        if deleted == 0:
            # Confirmed or purged by a concurrent request
            stmt = (
                select(User)
                .where(User.id == user.id)
                .execution_options(populate_existing=True)
            )
            result = await self.session.exec(stmt)
            return result.one_or_none()

        logger.info(f"Purged unconfirmed stale user {user.username}")
        if user in self.session:
            self.session.expunge(user)
        return None

    async def purge_stale_by_username(self, username: str, now: datetime) -> int:
        deleted = await self._delete_stale(User.username == username, now)
        if deleted:
            logger.info(f"Purged unconfirmed stale user {username}")
        return deleted

    async def purge_stale_by_email(self, email: str, now: datetime) -> int:
        deleted = await self._delete_stale(User.email == email, now)
        if deleted:
            logger.info(f"Purged unconfirmed stale user with email {email}")
        return deleted
