"""Accounts: users, roles, the sign-up whitelist and sessions."""

from postdesk.accounts.models import (
    AccountResult,
    AuthResult,
    Session,
    User,
    UserRole,
    WhitelistEntry,
)
from postdesk.accounts.services import LocalAuthProvider, SessionProvider, require_role
from postdesk.accounts.store import AccountStore

__all__ = [
    "AccountResult",
    "AccountStore",
    "AuthResult",
    "LocalAuthProvider",
    "Session",
    "SessionProvider",
    "User",
    "UserRole",
    "WhitelistEntry",
    "require_role",
]
