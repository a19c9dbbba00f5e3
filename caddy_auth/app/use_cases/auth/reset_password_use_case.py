"""
Reset Password Use Case

Consumes an active password reset request and sets the new password.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from caddy_auth.app.services.credentials import hash_password, verify_password
from caddy_auth.app.services.unit_of_work import UnitOfWork
from caddy_auth.domain.entities import ErrorCode
from caddy_auth.domain.validation import validate_password
from caddy_auth.libs.result import Error, Result, Return
from .dtos import ResetPasswordResponse
from .errors import account_disabled, reset_expired, technical_error

logger = logging.getLogger(__name__)


class ResetPasswordUseCase:
    """
    Use case for completing a password reset.

    Business Rules:
    - The new password is validated before the request is touched, so a
      rejected password does not spend the request
    - Only an active request younger than its lifespan can be used;
      anything else reports TOKEN_EXPIRED
    - Every attempt past that point spends the request: it is deactivated
      and committed before the outcome is decided
    - Disabled users get ACCOUNT_DISABLED
    - A wrong code reports WRONG_CODE
    - A matching code stores the new password under a fresh salt
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, url_token: str, confirm_token: str, new_password: str, now: datetime
    ) -> Result[ResetPasswordResponse]:
        """
        Execute reset password use case.

        Args:
            url_token: Token from the reset link
            confirm_token: Code from the reset email body
            new_password: New password to set
            now: Reset time

        Returns:
            Result with reset status, or Error

        Errors:
            - VALIDATION_ERROR: new password rejected
            - TOKEN_EXPIRED: no usable request for the url token
            - ACCOUNT_DISABLED: user is disabled
            - WRONG_CODE: code does not match
            - TECHNICAL_ERROR: database failure
        """
        reasons = validate_password(new_password)
        if reasons:
            return Return.err(
                Error(ErrorCode.VALIDATION_ERROR, "The new password is invalid", reasons)
            )

        try:
            async with self.uow:
                reset_request = await self.uow.password_reset_requests.get_active_by_url_token(
                    url_token
                )
                if reset_request is None:
                    return Return.err(reset_expired())

                usable = reset_request.usable(now)
                user_id = reset_request.user_id
                code_matches = verify_password(
                    confirm_token,
                    reset_request.password_reset_token_hash,
                    reset_request.password_reset_token_salt,
                )

                # One attempt per request
                reset_request.deactivate()
                await self.uow.password_reset_requests.update(reset_request)
                await self.uow.commit()

                user = await self.uow.users.get_by_id(user_id) if usable else None
                if user is None:
                    return Return.err(reset_expired())
                if user.disabled:
                    return Return.err(account_disabled())
                username = user.username
                if not code_matches:
                    logger.warning(f"Wrong password reset code for {username}")
                    return Return.err(
                        Error(
                            ErrorCode.WRONG_CODE,
                            "Incorrect password reset code, please request a new password reset.",
                        )
                    )

                password_hash, password_salt = hash_password(new_password)
                user.password_hash = password_hash
                user.password_salt = password_salt
                await self.uow.users.update(user)
                await self.uow.commit()
        except SQLAlchemyError as e:
            logger.error(f"Password reset failed to persist: {e}")
            return Return.err(technical_error("updating your password"))

        logger.info(f"Password reset for {username}")
        return Return.ok(
            ResetPasswordResponse(
                status="success",
                message="Your password has been reset successfully.",
            )
        )
