from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func
from sqlmodel import col, select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from caddy_auth.app.repositories.password_reset_request_repository import (
    IPasswordResetRequestRepository,
)
from caddy_auth.domain.entities import PasswordResetRequest


class PasswordResetRequestRepository(IPasswordResetRequestRepository):
    """PasswordResetRequest repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, request: PasswordResetRequest) -> PasswordResetRequest:
        """Create a new password reset request"""
        self.session.add(request)
        await self.session.flush()
        await self.session.refresh(request)
        return request

    async def update(self, request: PasswordResetRequest) -> PasswordResetRequest:
        """Update existing password reset request"""
        self.session.add(request)
        await self.session.flush()
        await self.session.refresh(request)
        return request

    async def get_active_by_url_token(self, url_token: str) -> Optional[PasswordResetRequest]:
        stmt = select(PasswordResetRequest).where(
            PasswordResetRequest.password_reset_url_token == url_token,
            PasswordResetRequest.active == True,  # noqa: E712
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def url_token_exists(self, url_token: str) -> bool:
        stmt = select(PasswordResetRequest.id).where(
            PasswordResetRequest.password_reset_url_token == url_token
        )
        result = await self.session.exec(stmt)
        return result.first() is not None

    async def count_recent_for_user(self, user_id: UUID, since: datetime, until: datetime) -> int:
        request_time = col(PasswordResetRequest.request_time)
        stmt = select(func.count(PasswordResetRequest.id)).where(
            PasswordResetRequest.user_id == user_id,
            request_time > since,
            request_time <= until,
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def deactivate_all_for_user(self, user_id: UUID) -> int:
        stmt = (
            update(PasswordResetRequest)
            .where(
                PasswordResetRequest.user_id == user_id,
                PasswordResetRequest.active == True,  # noqa: E712
            )
            .values(active=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
