"""
Domain Enums

Enumeration types used across domain entities and use case results.
"""

from enum import Enum


class AccountState(str, Enum):
    """Lifecycle state of a user account at a reference time"""

    unconfirmed_fresh = "unconfirmed_fresh"
    unconfirmed_stale = "unconfirmed_stale"
    confirmed = "confirmed"


class ErrorCode(str, Enum):
    """Error codes returned by the account flows"""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    USERNAME_TAKEN = "USERNAME_TAKEN"
    EMAIL_TAKEN = "EMAIL_TAKEN"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    SIGNUP_EXPIRED = "SIGNUP_EXPIRED"
    WRONG_CODE = "WRONG_CODE"
    RATE_LIMITED = "RATE_LIMITED"
    RECENTLY_SENT = "RECENTLY_SENT"
    ACCOUNT_DISABLED = "ACCOUNT_DISABLED"
    NOT_CONFIRMED = "NOT_CONFIRMED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    TECHNICAL_ERROR = "TECHNICAL_ERROR"

    def __str__(self) -> str:
        return self.value
