"""Account models: users, roles, the sign-up whitelist and sessions."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class UserRole(StrEnum):
    """Role of a backoffice user.

    ADMIN manages the whitelist and roles, EDITOR writes articles,
    READER only reads.
    """

    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    READER = "READER"


class User(BaseModel):
    """A registered backoffice user."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    email: str
    name: str = ""
    role: UserRole = UserRole.READER
    password_hash: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))


class WhitelistEntry(BaseModel):
    """An email address allowed to sign up."""

    id: int
    email: str


class Session(BaseModel):
    """An authenticated session for one user."""

    user: User
    token: str = ""
    expires_at: datetime

    @property
    def is_expired(self) -> bool:
        return datetime.now(tz=UTC) >= self.expires_at


class AuthResult(BaseModel):
    """Outcome of a sign-up or sign-in attempt.

    ``errors`` maps a form field (or ``_form`` for form-wide problems) to
    its messages.
    """

    success: bool = False
    errors: dict[str, list[str]] = Field(default_factory=dict)
    session: Session | None = None


class AccountResult(BaseModel):
    """Outcome of a whitelist or role-management action."""

    success: bool = False
    error: str | None = None
    user: User | None = None
    entry: WhitelistEntry | None = None
