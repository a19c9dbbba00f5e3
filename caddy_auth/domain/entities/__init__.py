"""
Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import AccountState, ErrorCode

# Export all entities
from .user import User
from .password_reset_request import PasswordResetRequest

__all__ = [
    # Enums
    "AccountState",
    "ErrorCode",
    # Entities
    "User",
    "PasswordResetRequest",
]
