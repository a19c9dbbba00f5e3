"""
Login Use Case

Decides whether a session may be established for a username/email and
password. Session mechanics (cookies, tokens) belong to the caller.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from caddy_auth.app.services.credentials import hash_password, verify_password
from caddy_auth.app.services.unit_of_work import UnitOfWork
from caddy_auth.domain.entities import ErrorCode
from caddy_auth.libs.result import Error, Result, Return
from .dtos import LoginResponse
from .errors import account_disabled, technical_error

logger = logging.getLogger(__name__)


class LoginUseCase:
    """
    Use case for user login.

    Business Rules:
    - Lookup by email when the input is a valid address, else by username
    - Unconfirmed stale users are purged and treated as unknown
    - Unknown users still cost one bcrypt hash so timing does not reveal them
    - Password is checked before any account state is revealed
    - Disabled users get ACCOUNT_DISABLED
    - Unconfirmed users get NOT_CONFIRMED
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def _invalid_credentials(self) -> Error:
        return Error(ErrorCode.INVALID_CREDENTIALS, "Wrong username/password combination")

    async def execute(
        self, username_or_email: str, password: str, now: datetime
    ) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            username_or_email: Username or email address
            password: Plain text password
            now: Login time

        Returns:
            Result with the identity to establish a session for, or Error
        """
        try:
            async with self.uow:
                user = await self.uow.users.get_by_username_or_email(username_or_email)
                if user is not None:
                    user = await self.uow.users.destroy_if_unconfirmed_stale(user, now)
                    if user is None:
                        await self.uow.commit()

                if user is None:
                    # Spend the same time as a real check
                    hash_password("not-a-real-password")
                    return Return.err(self._invalid_credentials())

                if not verify_password(password, user.password_hash, user.password_salt):
                    return Return.err(self._invalid_credentials())

                if user.disabled:
                    return Return.err(account_disabled())

                if not user.is_confirmed(now):
                    return Return.err(
                        Error(
                            ErrorCode.NOT_CONFIRMED,
                            "Your account has been created, but you have not yet confirmed it. "
                            "Please follow the instructions in the email that was sent to you, "
                            "or request a new confirmation email if needed.",
                        )
                    )

                logger.info(f"User {user.username} authenticated")
                return Return.ok(
                    LoginResponse(
                        status="authenticated",
                        user_id=str(user.id),
                        username=user.username,
                        default_timezone=user.default_timezone,
                    )
                )
        except SQLAlchemyError as e:
            logger.error(f"Login lookup failed: {e}")
            return Return.err(technical_error("logging you in"))
