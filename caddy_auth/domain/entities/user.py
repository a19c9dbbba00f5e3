"""
User Entity

Represents one account and the lifecycle predicates evaluated against it.
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from .enums import AccountState

# Unconfirmed accounts older than this are purged on the next lookup
INACTIVITY_WINDOW = timedelta(days=7)

USERNAME_MAX_LENGTH = 40
EMAIL_MAX_LENGTH = 60
TIMEZONE_MAX_LENGTH = 60


class User(SQLModel, table=True):
    """
    User entity - one account.

    Business Rules:
    - Username and email are each globally unique
    - password_hash is always the bcrypt hash of the current password
      under password_salt
    - signup_confirmation_time is None (or in the future) while unconfirmed
    - Unconfirmed accounts go stale once INACTIVITY_WINDOW has elapsed
      since signup_time, and are purged lazily by whichever flow looks
      them up next

    All timestamps are naive UTC. Every predicate takes the reference time
    explicitly so callers decide what "now" is.
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(unique=True, index=True, max_length=USERNAME_MAX_LENGTH)
    email: str = Field(unique=True, index=True, max_length=EMAIL_MAX_LENGTH)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars
    password_salt: str = Field(max_length=29)  # Bcrypt salt is 29 chars

    disabled: bool = Field(default=False)
    default_timezone: str = Field(max_length=TIMEZONE_MAX_LENGTH)

    # Timestamps
    signup_time: datetime = Field(sa_column=Column(DateTime, nullable=False))
    signup_confirmation_time: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )

    def is_confirmed(self, now: datetime) -> bool:
        return (
            self.signup_confirmation_time is not None
            and self.signup_confirmation_time <= now
        )

    def stale_after(self) -> datetime:
        return self.signup_time + INACTIVITY_WINDOW

    def is_unconfirmed_fresh(self, now: datetime) -> bool:
        return not self.is_confirmed(now) and now <= self.stale_after()

    def is_unconfirmed_stale(self, now: datetime) -> bool:
        return not self.is_confirmed(now) and now > self.stale_after()

    def state(self, now: datetime) -> AccountState:
        if self.is_confirmed(now):
            return AccountState.confirmed
        if self.is_unconfirmed_stale(now):
            return AccountState.unconfirmed_stale
        return AccountState.unconfirmed_fresh

    def confirm(self, now: datetime) -> bool:
        """
        Mark the signup as confirmed at ``now``.

        Returns False (and changes nothing) when the account is already
        confirmed as of ``now``.
        """
        if self.is_confirmed(now):
            return False
        self.signup_confirmation_time = now
        return True
