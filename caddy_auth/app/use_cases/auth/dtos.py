"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for the account flows.
Responses may carry the freshly issued secrets so the caller can hand them
to the mailer or to tests; the API layer never serializes them.
"""

from typing import Optional

from pydantic import BaseModel

from caddy_auth.app.services.tokens import TokenPair


# ============================================================================
# Command DTOs
# ============================================================================


class SignupCommand(BaseModel):
    """
    Signup command - raw signup intent

    Validated by SignupUseCase so every problem is reported at once.
    """

    username: str
    email: str
    password: str
    default_timezone: str


# ============================================================================
# Response DTOs
# ============================================================================


class SignupResponse(BaseModel):
    """Response for signup use case"""

    status: str
    user_id: str
    username: str
    email: str
    email_sent: bool
    tokens: TokenPair


class ConfirmSignupResponse(BaseModel):
    """Response for signup confirmation use case"""

    status: str
    username: str
    message: str


class ResendSignupConfirmationResponse(BaseModel):
    """Response for resend signup confirmation use case"""

    status: str
    message: str
    email_sent: bool = False
    tokens: Optional[TokenPair] = None


class LoginResponse(BaseModel):
    """Identity a session may be established for"""

    status: str
    user_id: str
    username: str
    default_timezone: str


class RequestPasswordResetResponse(BaseModel):
    """Response for request password reset use case"""

    status: str
    message: str
    email_sent: bool = False
    tokens: Optional[TokenPair] = None


class ResetPasswordResponse(BaseModel):
    """Response for password reset use case"""

    status: str
    message: str
