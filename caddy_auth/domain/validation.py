"""
Input validation for account data.

Each check returns a list of human-readable reasons; an empty list means
the value is acceptable.
"""

import re
from typing import List

import pytz
from email_validator import EmailNotValidError, validate_email

from .entities.user import EMAIL_MAX_LENGTH, USERNAME_MAX_LENGTH

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72


def is_valid_email(value: str) -> bool:
    """Syntactic email check (no DNS lookups)"""
    if not value:
        return False
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def validate_username(username: str) -> List[str]:
    if not username or len(username) > USERNAME_MAX_LENGTH:
        return [f"Username must be between 1 and {USERNAME_MAX_LENGTH} characters long."]
    if not USERNAME_PATTERN.match(username):
        return ["Username may only contain letters, digits, hyphens and underscores."]
    return []


def validate_email_address(email: str) -> List[str]:
    if not email or len(email) > EMAIL_MAX_LENGTH:
        return [f"Email must be between 1 and {EMAIL_MAX_LENGTH} characters long."]
    if not is_valid_email(email):
        return [f"{email} is not a valid email address."]
    return []


def validate_timezone(timezone: str) -> List[str]:
    if timezone not in pytz.all_timezones_set:
        return [f"{timezone} is not a recognized time zone."]
    return []


def validate_password(password: str) -> List[str]:
    if len(password) < MIN_PASSWORD_LENGTH:
        return [f"Your password must be at least {MIN_PASSWORD_LENGTH} characters long."]
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return [f"Your password must be at most {MAX_PASSWORD_BYTES} bytes long."]
    return []
