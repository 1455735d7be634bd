"""
Session and Account Models

DESIGN DECISION: "Who is logged in" is an explicit value passed to the
ledger engine, never ambient global state. Anything that needs to know the
current user receives a SessionContext.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SessionContext(BaseModel):
    """
    The authenticated (or anonymous) user of the current session.

    Immutable: logging in or out produces a new context.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    username: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Logged-in user, None for an anonymous session"
    )
    authenticated: bool = Field(
        default=False,
        description="Has the user passed login?"
    )
    started_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When this session context was created"
    )

    @model_validator(mode='after')
    def validate_identity(self) -> 'SessionContext':
        if self.authenticated and not self.username:
            raise ValueError("An authenticated session needs a username")
        return self

    @classmethod
    def anonymous(cls) -> "SessionContext":
        return cls()

    @classmethod
    def for_user(cls, username: str) -> "SessionContext":
        """Build an authenticated context for ``username``."""
        return cls(username=username, authenticated=True)


class UserAccount(BaseModel):
    """
    A registered identity.

    The plain password never reaches this model; only its salted hash.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Unique login name"
    )
    email: str = Field(
        ...,
        max_length=254,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="Contact email"
    )
    password_hash: str = Field(
        ...,
        min_length=1,
        description="Salted hash in werkzeug's method$salt$hash form"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow
    )
