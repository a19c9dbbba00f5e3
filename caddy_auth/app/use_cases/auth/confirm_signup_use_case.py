"""
Confirm Signup Use Case

Consumes the emailed confirmation code of a pending signup.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from caddy_auth.app.services.confirmation_tokens import ConfirmationTokens
from caddy_auth.app.services.token_store import TokenStoreUnavailable
from caddy_auth.app.services.unit_of_work import UnitOfWork
from caddy_auth.domain.entities import ErrorCode
from caddy_auth.libs.result import Error, Result, Return
from .dtos import ConfirmSignupResponse
from .errors import account_disabled, confirmation_expired, signup_expired, technical_error

logger = logging.getLogger(__name__)


class ConfirmSignupUseCase:
    """
    Use case for signup confirmation.

    Business Rules:
    - The url token resolves the username of the pending cycle; unknown or
      lapsed url tokens report TOKEN_EXPIRED
    - A stale unconfirmed user is purged and reported as SIGNUP_EXPIRED
    - Disabled users get ACCOUNT_DISABLED
    - Already confirmed users succeed with status already_confirmed and no
      token is consumed
    - A wrong code reports WRONG_CODE and leaves the cycle intact so the
      user can retry within its lifespan
    - A matching code confirms the user, then spends the code
    """

    def __init__(self, uow: UnitOfWork, confirmation_tokens: ConfirmationTokens):
        self.uow = uow
        self.confirmation_tokens = confirmation_tokens

    async def execute(
        self, url_token: str, confirm_token: str, now: datetime
    ) -> Result[ConfirmSignupResponse]:
        """
        Execute signup confirmation use case.

        Args:
            url_token: Token from the confirmation link
            confirm_token: Code from the confirmation email body
            now: Confirmation time

        Returns:
            Result with confirmation status, or Error

        Errors:
            - TOKEN_EXPIRED: url token unknown, or code hash/salt lapsed
            - SIGNUP_EXPIRED: user purged as stale (or gone)
            - ACCOUNT_DISABLED: user is disabled
            - WRONG_CODE: code does not match
            - TECHNICAL_ERROR: token store or database failure
        """
        try:
            username = await self.confirmation_tokens.username_for(url_token)
            if username is None:
                await self.confirmation_tokens.clear(url_token)
                return Return.err(confirmation_expired())

            async with self.uow:
                user = await self.uow.users.get_by_username(username)
                if user is not None:
                    user = await self.uow.users.destroy_if_unconfirmed_stale(user, now)
                    if user is None:
                        await self.uow.commit()

                if user is None:
                    await self.confirmation_tokens.clear(url_token)
                    return Return.err(signup_expired())

                if user.disabled:
                    return Return.err(account_disabled())

                if user.is_confirmed(now):
                    # Idempotent: nothing to consume
                    return Return.ok(
                        ConfirmSignupResponse(
                            status="already_confirmed",
                            username=username,
                            message="Your account has already been confirmed!",
                        )
                    )

                token_check = await self.confirmation_tokens.check_confirm_token(
                    username, confirm_token
                )
                if token_check is None:
                    # Hash or salt lapsed between the username lookup and now
                    await self.confirmation_tokens.clear(url_token)
                    return Return.err(confirmation_expired())
                if not token_check:
                    return Return.err(
                        Error(ErrorCode.WRONG_CODE, "Incorrect confirmation code.")
                    )

                if not user.confirm(now):
                    return Return.err(technical_error("confirming the newly signed-up user"))
                await self.uow.users.update(user)
                await self.uow.commit()
        except TokenStoreUnavailable as e:
            logger.error(f"Signup confirmation unavailable: {e}")
            return Return.err(technical_error("checking the confirmation code"))
        except SQLAlchemyError as e:
            logger.error(f"Could not persist signup confirmation for {username}: {e}")
            return Return.err(technical_error("confirming the newly signed-up user"))

        try:
            await self.confirmation_tokens.consume(username)
        except TokenStoreUnavailable as e:
            # The user is confirmed, so the leftover code can no longer be used
            logger.error(f"Could not clear confirmation tokens for {username}: {e}")

        logger.info(f"User {username} confirmed signup")
        return Return.ok(
            ConfirmSignupResponse(
                status="confirmed",
                username=username,
                message="Your account has been confirmed successfully!",
            )
        )
