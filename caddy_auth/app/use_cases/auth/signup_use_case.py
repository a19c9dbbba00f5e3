"""
Signup Use Case

Creates an unconfirmed account and starts its email confirmation cycle.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from caddy_auth.app.services.confirmation_tokens import ConfirmationTokens
from caddy_auth.app.services.credentials import hash_password
from caddy_auth.app.services.mailer import AccountMailer
from caddy_auth.app.services.token_store import TokenStoreUnavailable
from caddy_auth.app.services.tokens import TokenCollisionError
from caddy_auth.app.services.unit_of_work import UnitOfWork
from caddy_auth.domain.entities import ErrorCode, User
from caddy_auth.domain.validation import (
    validate_email_address,
    validate_password,
    validate_timezone,
    validate_username,
)
from caddy_auth.libs.result import Error, Result, Return
from .dtos import SignupCommand, SignupResponse
from .errors import technical_error

logger = logging.getLogger(__name__)


class SignupUseCase:
    """
    Signup Use Case

    Command/Response Pattern:
    - Input: SignupCommand (raw signup intent)
    - Output: Result[SignupResponse]

    Business Logic:
    1. Validate username, email, time zone and password; report every
       problem at once (VALIDATION_ERROR)
    2. Purge unconfirmed stale users holding the username or email
    3. Check username and email uniqueness (USERNAME_TAKEN, EMAIL_TAKEN)
    4. Hash the password under a fresh salt and create the user with
       signup_confirmation_time = None
    5. Issue confirmation tokens and email them

    The user row is committed before tokens are issued; if the token store
    is down the account still exists and the resend flow can finish it.
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

    def _validate(self, command: SignupCommand) -> list[str]:
        return (
            validate_username(command.username)
            + validate_email_address(command.email)
            + validate_timezone(command.default_timezone)
            + validate_password(command.password)
        )

    def _username_taken(self, username: str) -> Error:
        return Error(ErrorCode.USERNAME_TAKEN, f"There is already a user with username {username}.")

    def _email_taken(self, email: str) -> Error:
        return Error(ErrorCode.EMAIL_TAKEN, f"There is already a user with email {email}.")

    async def _conflict_after_race(self, command: SignupCommand) -> Error:
        """Work out which unique constraint a concurrent signup won"""
        async with self.uow:
            if await self.uow.users.get_by_username(command.username):
                return self._username_taken(command.username)
        return self._email_taken(command.email)

    async def execute(self, command: SignupCommand, now: datetime) -> Result[SignupResponse]:
        """
        Execute signup use case

        Args:
            command: SignupCommand with username, email, password, default_timezone
            now: Signup time

        Returns:
            Result[SignupResponse] with the new user and the issued tokens
        """
        reasons = self._validate(command)
        if reasons:
            return Return.err(
                Error(ErrorCode.VALIDATION_ERROR, "Signup details are invalid", reasons)
            )

        try:
            async with self.uow:
                # Stale signups must never block a new one
                await self.uow.users.purge_stale_by_username(command.username, now)
                await self.uow.users.purge_stale_by_email(command.email, now)
                await self.uow.commit()

            async with self.uow:
                if await self.uow.users.get_by_username(command.username):
                    return Return.err(self._username_taken(command.username))
                if await self.uow.users.get_by_email(command.email):
                    return Return.err(self._email_taken(command.email))

                password_hash, password_salt = hash_password(command.password)
                user = User(
                    username=command.username,
                    email=command.email,
                    password_hash=password_hash,
                    password_salt=password_salt,
                    disabled=False,
                    default_timezone=command.default_timezone,
                    signup_time=now,
                    signup_confirmation_time=None,
                )
                user = await self.uow.users.create(user)
                user_id, username, email = str(user.id), user.username, user.email
                await self.uow.commit()
        except IntegrityError:
            logger.warning(f"Signup for {command.username} lost a uniqueness race")
            return Return.err(await self._conflict_after_race(command))
        except SQLAlchemyError as e:
            logger.error(f"Signup for {command.username} failed to persist: {e}")
            return Return.err(technical_error("saving the new user to the database"))

        try:
            tokens = await self.confirmation_tokens.issue(username)
        except (TokenStoreUnavailable, TokenCollisionError) as e:
            logger.error(f"Could not issue signup confirmation tokens for {username}: {e}")
            return Return.err(technical_error("creating the confirmation email"))

        email_sent = await self.mailer.send_signup_confirmation(
            email, username, tokens.confirm_token, tokens.url_token
        )
        logger.info(f"User {username} signed up")

        return Return.ok(
            SignupResponse(
                status="created",
                user_id=user_id,
                username=username,
                email=email,
                email_sent=email_sent,
                tokens=tokens,
            )
        )
