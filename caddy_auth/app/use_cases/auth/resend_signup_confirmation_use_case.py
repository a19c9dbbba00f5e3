"""
Resend Signup Confirmation Use Case

Starts a fresh confirmation cycle for a pending signup.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from caddy_auth.app.services.confirmation_tokens import ConfirmationTokens
from caddy_auth.app.services.mailer import AccountMailer
from caddy_auth.app.services.token_store import TokenStoreUnavailable
from caddy_auth.app.services.tokens import TokenCollisionError
from caddy_auth.app.services.unit_of_work import UnitOfWork
from caddy_auth.domain.entities import ErrorCode
from caddy_auth.libs.result import Error, Result, Return
from .dtos import ResendSignupConfirmationResponse
from .errors import account_disabled, technical_error, user_not_found

logger = logging.getLogger(__name__)


class ResendSignupConfirmationUseCase:
    """
    Use case for resending the signup confirmation email.

    Business Rules:
    - Stale unconfirmed users with this email are purged first
    - Unknown email reports USER_NOT_FOUND
    - Disabled users get ACCOUNT_DISABLED
    - Already confirmed users succeed with status already_confirmed
    - While the cooldown marker is alive the resend is refused with
      RECENTLY_SENT, whatever the state of the other cycle keys
    - Otherwise a new cycle replaces the previous code
    """

    def __init__(
        self,
        uow: UnitOfWork,
        confirmation_tokens: ConfirmationTokens,
        mailer: AccountMailer,
    ):
        self.uow = uow
        self.confirmation_tokens = confirmation_tokens
        self.mailer = mailer

    async def execute(
        self, email: str, now: datetime
    ) -> Result[ResendSignupConfirmationResponse]:
        try:
            async with self.uow:
                if await self.uow.users.purge_stale_by_email(email, now):
                    await self.uow.commit()
                user = await self.uow.users.get_by_email(email)

                if user is None:
                    return Return.err(user_not_found(email))

                if user.disabled:
                    return Return.err(account_disabled())

                if user.is_confirmed(now):
                    return Return.ok(
                        ResendSignupConfirmationResponse(
                            status="already_confirmed",
                            message="Your account has already been confirmed!",
                        )
                    )

                username = user.username
                if await self.confirmation_tokens.recently_sent(username):
                    return Return.err(
                        Error(
                            ErrorCode.RECENTLY_SENT,
                            f"A confirmation email has already been sent recently to {email}. "
                            "Please double-check your email, including spam filters and other "
                            "folders, and request another if it doesn't show up.",
                        )
                    )
                tokens = await self.confirmation_tokens.issue(username)
        except (TokenStoreUnavailable, TokenCollisionError) as e:
            logger.error(f"Could not issue signup confirmation tokens for {email}: {e}")
            return Return.err(technical_error("creating the confirmation email"))
        except SQLAlchemyError as e:
            logger.error(f"Could not look up {email} for confirmation resend: {e}")
            return Return.err(technical_error("looking up your account"))

        email_sent = await self.mailer.send_signup_confirmation(
            email, username, tokens.confirm_token, tokens.url_token
        )

        return Return.ok(
            ResendSignupConfirmationResponse(
                status="sent",
                message=f"A new confirmation email has been sent to {email}.",
                email_sent=email_sent,
                tokens=tokens,
            )
        )
