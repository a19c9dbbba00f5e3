from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from caddy_auth.domain.entities import PasswordResetRequest


class IPasswordResetRequestRepository(ABC):
    """PasswordResetRequest repository interface - application layer"""

    @abstractmethod
    async def create(self, request: PasswordResetRequest) -> PasswordResetRequest:
        """Create a new password reset request"""
        pass

    @abstractmethod
    async def update(self, request: PasswordResetRequest) -> PasswordResetRequest:
        """Update existing password reset request"""
        pass

    @abstractmethod
    async def get_active_by_url_token(self, url_token: str) -> Optional[PasswordResetRequest]:
        """Get the active request carrying this url token"""
        pass

    @abstractmethod
    async def url_token_exists(self, url_token: str) -> bool:
        """Whether any request, active or not, ever used this url token"""
        pass

    @abstractmethod
    async def count_recent_for_user(self, user_id: UUID, since: datetime, until: datetime) -> int:
        """Count requests for a user with since < request_time <= until"""
        pass

    @abstractmethod
    async def deactivate_all_for_user(self, user_id: UUID) -> int:
        """Deactivate every active request of a user. Returns count."""
        pass
