"""
Account Use Cases

Signup, confirmation, login and password reset business logic.
"""

from .signup_use_case import SignupUseCase
from .confirm_signup_use_case import ConfirmSignupUseCase
from .resend_signup_confirmation_use_case import ResendSignupConfirmationUseCase
from .login_use_case import LoginUseCase
from .request_password_reset_use_case import RequestPasswordResetUseCase
from .reset_password_use_case import ResetPasswordUseCase
from .dtos import (
    SignupCommand,
    SignupResponse,
    ConfirmSignupResponse,
    ResendSignupConfirmationResponse,
    LoginResponse,
    RequestPasswordResetResponse,
    ResetPasswordResponse,
)

__all__ = [
    # Use Cases
    "SignupUseCase",
    "ConfirmSignupUseCase",
    "ResendSignupConfirmationUseCase",
    "LoginUseCase",
    "RequestPasswordResetUseCase",
    "ResetPasswordUseCase",
    # DTOs - Commands
    "SignupCommand",
    # DTOs - Responses
    "SignupResponse",
    "ConfirmSignupResponse",
    "ResendSignupConfirmationResponse",
    "LoginResponse",
    "RequestPasswordResetResponse",
    "ResetPasswordResponse",
]
