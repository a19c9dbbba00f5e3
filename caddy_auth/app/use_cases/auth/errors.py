"""Error values shared by the account flows."""

from config import ApplicationConfig
from caddy_auth.domain.entities import ErrorCode
from caddy_auth.domain.entities.user import INACTIVITY_WINDOW
from caddy_auth.libs.result import Error


def technical_error(action: str) -> Error:
    return Error(
        ErrorCode.TECHNICAL_ERROR,
        f"Technical issue {action}, please contact {ApplicationConfig.SUPPORT_EMAIL}.",
    )


def account_disabled() -> Error:
    return Error(
        ErrorCode.ACCOUNT_DISABLED,
        f"Your account has been disabled. Please contact {ApplicationConfig.SUPPORT_EMAIL}.",
    )


def confirmation_expired() -> Error:
    return Error(
        ErrorCode.TOKEN_EXPIRED,
        "Your signup confirmation request has expired (they expire after a while for "
        "security reasons). Please request a new one.",
    )


def signup_expired() -> Error:
    return Error(
        ErrorCode.SIGNUP_EXPIRED,
        f"Your signup was not confirmed within {INACTIVITY_WINDOW.days} days and has been "
        "deleted. Please sign up again.",
    )


def user_not_found(email: str) -> Error:
    return Error(
        ErrorCode.USER_NOT_FOUND,
        f"No user with email {email} was found. If you signed up more than "
        f"{INACTIVITY_WINDOW.days} days ago without confirming, your signup may have been "
        "deleted. Please try signing up again.",
    )


def reset_expired() -> Error:
    return Error(
        ErrorCode.TOKEN_EXPIRED,
        "Invalid or expired password reset token, please request a new password reset.",
    )
