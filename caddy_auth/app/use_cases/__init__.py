"""
Use Cases

Organized into domain folders:
- auth/: Account lifecycle, signup confirmation and password reset
"""

from .auth import (
    SignupUseCase,
    SignupCommand,
    SignupResponse,
    ConfirmSignupUseCase,
    ResendSignupConfirmationUseCase,
    LoginUseCase,
    RequestPasswordResetUseCase,
    ResetPasswordUseCase,
)

__all__ = [
    "SignupUseCase",
    "SignupCommand",
    "SignupResponse",
    "ConfirmSignupUseCase",
    "ResendSignupConfirmationUseCase",
    "LoginUseCase",
    "RequestPasswordResetUseCase",
    "ResetPasswordUseCase",
]
