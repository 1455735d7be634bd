"""Authentication package."""

from budget_manager.services.auth.service import (
    AuthenticationError,
    AuthError,
    AuthService,
    DuplicateUserError,
    RegistrationError,
)

__all__ = [
    "AuthenticationError",
    "AuthError",
    "AuthService",
    "DuplicateUserError",
    "RegistrationError",
]
