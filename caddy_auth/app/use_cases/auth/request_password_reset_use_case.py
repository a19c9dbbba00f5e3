"""
Request Password Reset Use Case

Records a new password reset request in the ledger and emails its tokens.
"""

import logging
from datetime import datetime
from typing import Callable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from caddy_auth.app.services.credentials import hash_password
from caddy_auth.app.services.mailer import AccountMailer
from caddy_auth.app.services.tokens import (
    MAX_URL_TOKEN_ATTEMPTS,
    TokenCollisionError,
    TokenPair,
    generate_token,
)
from caddy_auth.app.services.unit_of_work import UnitOfWork
from caddy_auth.domain.entities import ErrorCode, PasswordResetRequest
from caddy_auth.domain.entities.password_reset_request import (
    MAX_RECENT_PASSWORD_RESET_REQUESTS,
    RATE_LIMIT_WINDOW,
)
from caddy_auth.libs.result import Error, Result, Return
from .dtos import RequestPasswordResetResponse
from .errors import account_disabled, technical_error

logger = logging.getLogger(__name__)

SENT_MESSAGE = "If the email exists, a password reset link has been sent"


class RequestPasswordResetUseCase:
    """
    Use case for requesting a password reset.

    Business Rules:
    - Stale unconfirmed users with this email are purged first
    - Unknown email answers "sent" without sending anything (no enumeration)
    - Disabled users get ACCOUNT_DISABLED
    - Unconfirmed users get NOT_CONFIRMED (they must confirm signup first)
    - MAX_RECENT_PASSWORD_RESET_REQUESTS requests in the trailing
      RATE_LIMIT_WINDOW already made: RATE_LIMITED
    - The user row is locked before the rate limit is counted
    - In one transaction: draw a url token no request has ever used,
      deactivate every active request of the user, insert the new one
    - The confirm token is stored only as a bcrypt hash under a fresh salt
    """

    def __init__(
        self,
        uow: UnitOfWork,
        mailer: AccountMailer,
        token_factory: Callable[[], str] = generate_token,
    ):
        self.uow = uow
        self.mailer = mailer
        self.token_factory = token_factory

    async def _draw_url_token(self, confirm_token: str) -> str:
        for _ in range(MAX_URL_TOKEN_ATTEMPTS):
            url_token = self.token_factory()
            if url_token == confirm_token:
                continue
            if not await self.uow.password_reset_requests.url_token_exists(url_token):
                return url_token
            logger.warning("Password reset url token collision, drawing again")
        raise TokenCollisionError(
            f"Could not draw a free reset url token in {MAX_URL_TOKEN_ATTEMPTS} attempts"
        )

    async def execute(self, email: str, now: datetime) -> Result[RequestPasswordResetResponse]:
        """
        Execute request password reset use case.

        Args:
            email: User's email address
            now: Request time

        Returns:
            Result with reset status (and the issued tokens), or Error
        """
        try:
            async with self.uow:
                if await self.uow.users.purge_stale_by_email(email, now):
                    await self.uow.commit()
                user = await self.uow.users.get_by_email(email)

                if user is not None:
                    # Held until commit: concurrent requests for this user run one at a time
                    user = await self.uow.users.lock_by_id(user.id)
                if user is None:
                    return Return.ok(
                        RequestPasswordResetResponse(status="sent", message=SENT_MESSAGE)
                    )

                if user.disabled:
                    return Return.err(account_disabled())

                if not user.is_confirmed(now):
                    return Return.err(
                        Error(
                            ErrorCode.NOT_CONFIRMED,
                            "Your account is created but not yet confirmed. Please follow "
                            "the instructions in the confirmation email first.",
                        )
                    )

                recent = await self.uow.password_reset_requests.count_recent_for_user(
                    user.id, now - RATE_LIMIT_WINDOW, now
                )
                if recent >= MAX_RECENT_PASSWORD_RESET_REQUESTS:
                    return Return.err(
                        Error(
                            ErrorCode.RATE_LIMITED,
                            f"There have been too many recent password reset requests for "
                            f"{email}. Please wait a while before trying again.",
                        )
                    )

                confirm_token = generate_token()
                token_hash, token_salt = hash_password(confirm_token)
                url_token = await self._draw_url_token(confirm_token)

                await self.uow.password_reset_requests.deactivate_all_for_user(user.id)
                reset_request = PasswordResetRequest(
                    user_id=user.id,
                    request_time=now,
                    password_reset_token_hash=token_hash,
                    password_reset_token_salt=token_salt,
                    password_reset_url_token=url_token,
                    active=True,
                )
                await self.uow.password_reset_requests.create(reset_request)
                username = user.username
                await self.uow.commit()
        except TokenCollisionError as e:
            logger.error(f"Password reset request for {email} failed: {e}")
            return Return.err(technical_error("creating a password reset request"))
        except IntegrityError as e:
            # Another request for the same user committed its active row first
            logger.warning(f"Concurrent password reset request for {email} rejected: {e}")
            return Return.err(technical_error("creating a password reset request"))
        except SQLAlchemyError as e:
            logger.error(f"Password reset request for {email} failed to persist: {e}")
            return Return.err(technical_error("creating a password reset request"))

        tokens = TokenPair(confirm_token=confirm_token, url_token=url_token)
        email_sent = await self.mailer.send_password_reset(
            email, username, tokens.confirm_token, tokens.url_token
        )
        logger.info(f"Password reset requested for {username}")

        return Return.ok(
            RequestPasswordResetResponse(
                status="sent",
                message=SENT_MESSAGE,
                email_sent=email_sent,
                tokens=tokens,
            )
        )
