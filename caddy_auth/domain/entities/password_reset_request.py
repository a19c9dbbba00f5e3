"""
PasswordResetRequest Entity

One attempt to reset a user's password, kept as a persistent ledger row.
"""

from datetime import datetime, timedelta
from uuid import UUID, uuid4

from sqlalchemy import text
from sqlmodel import Column, DateTime, Field, Index, SQLModel

PASSWORD_RESET_LIFESPAN = timedelta(hours=6)

# Rate limit: at most this many requests per user in RATE_LIMIT_WINDOW
MAX_RECENT_PASSWORD_RESET_REQUESTS = 5
RATE_LIMIT_WINDOW = timedelta(hours=24)


class PasswordResetRequest(SQLModel, table=True):
    """
    PasswordResetRequest entity - ledger of reset attempts.

    Business Rules:
    - At most one active request per user, backed by a partial unique index;
      creating a request locks the user row, then deactivates every earlier
      one for the same user in the same transaction
    - password_reset_url_token is unique across every request ever created
    - The confirm token is stored only as a bcrypt hash under its own salt
    - Usable while active and younger than PASSWORD_RESET_LIFESPAN
    - Deactivated on use (success or failure) and on expiry detection;
      never reactivated
    """

    __tablename__ = "password_reset_requests"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", index=True)
    password_reset_token_hash: str = Field(max_length=60)
    password_reset_token_salt: str = Field(max_length=29)
    password_reset_url_token: str = Field(unique=True, index=True, max_length=64)

    active: bool = Field(default=True)

    # Timestamps
    request_time: datetime = Field(sa_column=Column(DateTime, nullable=False))

    __table_args__ = (
        Index("idx_password_reset_user_request_time", "user_id", "request_time"),
        Index("idx_password_reset_active", "active"),
        # At most one active request per user
        Index(
            "uq_password_reset_one_active",
            "user_id",
            unique=True,
            sqlite_where=text("active"),
            postgresql_where=text("active"),
        ),
    )

    def expires_at(self) -> datetime:
        return self.request_time + PASSWORD_RESET_LIFESPAN

    def usable(self, now: datetime) -> bool:
        return self.active and now < self.expires_at()

    def deactivate(self) -> None:
        self.active = False
