"""Authentication, the sign-up whitelist gate, and role management.

Sessions are HS256 JWTs signed with the configured secret.  Passwords are
stored as salted PBKDF2-SHA256 hashes.  Management actions return
``AccountResult`` objects instead of raising, so a caller can display the
message as-is.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
import secrets
from datetime import UTC, datetime, timedelta
from typing import Protocol

import jwt
from postdesk.accounts.models import (
    AccountResult,
    AuthResult,
    Session,
    User,
    UserRole,
    WhitelistEntry,
)
from postdesk.accounts.store import AccountStore
from postdesk.config import AuthConfig
from postdesk.errors import (
    ConfigurationError,
    NotAuthenticatedError,
    PermissionDeniedError,
    RecordNotFoundError,
)

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

NOT_WHITELISTED_MESSAGE = (
    "You are not authorized to use this application. Please contact an administrator."
)

_HASH_ALGORITHM = "pbkdf2_sha256"
_HASH_ITERATIONS = 240_000
_JWT_ALGORITHM = "HS256"


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ── Passwords ────────────────────────────────────────────────────


def hash_password(password: str, *, salt: str | None = None) -> str:
    """Return ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>``."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), _HASH_ITERATIONS
    )
    return f"{_HASH_ALGORITHM}${_HASH_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, expected = encoded.split("$")
    except ValueError:
        return False
    if algorithm != _HASH_ALGORITHM:
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations)
    )
    return hmac.compare_digest(digest.hex(), expected)


def validate_sign_up(name: str, email: str, password: str) -> dict[str, list[str]]:
    """Field errors for the sign-up form; empty when valid."""
    errors: dict[str, list[str]] = {}
    if len(name.strip()) < 2:
        errors.setdefault("name", []).append("Name must contain at least 2 characters")
    if not EMAIL_RE.match(email):
        errors.setdefault("email", []).append("Invalid email address")
    if len(password) < 8:
        errors.setdefault("password", []).append("Password must contain at least 8 characters")
    if not re.search(r"[A-Z]", password):
        errors.setdefault("password", []).append(
            "Password must contain at least one uppercase letter"
        )
    if not re.search(r"[0-9]", password):
        errors.setdefault("password", []).append("Password must contain at least one number")
    return errors


# ── Sessions ─────────────────────────────────────────────────────


class SessionProvider(Protocol):
    """Anything that can tell who is signed in."""

    def get_current_session(self) -> Session | None: ...


class StaticSessionProvider:
    """Provider that always returns the same session (or none)."""

    def __init__(self, session: Session | None) -> None:
        self._session = session

    def get_current_session(self) -> Session | None:
        return self._session


def local_admin_session() -> Session:
    """Session for an operator working directly on the local stores."""
    user = User(
        id="local-admin",
        email="admin@localhost",
        name="Local administrator",
        role=UserRole.ADMIN,
    )
    return Session(user=user, expires_at=datetime.max.replace(tzinfo=UTC))


def require_role(session: Session | None, *roles: UserRole) -> Session:
    """Return the session if it belongs to one of ``roles``.

    Raises:
        NotAuthenticatedError: No session, or the session has expired.
        PermissionDeniedError: The user's role is not allowed.
    """
    if session is None or session.is_expired:
        raise NotAuthenticatedError("Not authenticated")
    if roles and session.user.role not in roles:
        raise PermissionDeniedError(f"{session.user.role} may not perform this action")
    return session


class LocalAuthProvider:
    """Email/password authentication against the account store."""

    def __init__(
        self,
        store: AccountStore,
        *,
        secret_key: str,
        session_hours: int = 24,
        bootstrap_admin_email: str = "",
    ) -> None:
        self._store = store
        self._secret_key = secret_key
        self._session_hours = session_hours
        self._bootstrap_admin_email = normalize_email(bootstrap_admin_email)
        self._token: str | None = None

    @classmethod
    def from_config(cls, store: AccountStore, auth: AuthConfig) -> LocalAuthProvider:
        """Build a provider from the [auth] settings.

        Raises:
            ConfigurationError: No secret key is configured.
        """
        if not auth.secret_key.strip():
            raise ConfigurationError(
                "No session secret configured; set auth.secret_key or POSTDESK_SECRET_KEY"
            )
        return cls(
            store,
            secret_key=auth.secret_key,
            session_hours=auth.session_hours,
            bootstrap_admin_email=auth.bootstrap_admin_email,
        )

    @property
    def token(self) -> str | None:
        return self._token

    def _issue(self, user: User) -> Session:
        now = datetime.now(tz=UTC)
        expires_at = now + timedelta(hours=self._session_hours)
        payload = {
            "sub": user.id,
            "email": user.email,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(payload, self._secret_key, algorithm=_JWT_ALGORITHM)
        self._token = token
        return Session(user=user, token=token, expires_at=expires_at)

    def session_from_token(self, token: str) -> Session | None:
        """Resolve a token to a live session, or None if invalid or expired."""
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            logger.debug("Session token expired")
            return None
        except jwt.InvalidTokenError as exc:
            logger.debug("Rejected session token: %s", exc)
            return None
        user = self._store.get_user(payload.get("sub", ""))
        if user is None:
            return None
        expires_at = datetime.fromtimestamp(payload["exp"], tz=UTC)
        return Session(user=user, token=token, expires_at=expires_at)

    def get_current_session(self) -> Session | None:
        if self._token is None:
            return None
        return self.session_from_token(self._token)

    def sign_up(self, name: str, email: str, password: str) -> AuthResult:
        """Register a whitelisted email and sign the new user in.

        New users are READERs; the configured bootstrap admin email skips
        the whitelist and is registered as ADMIN.
        """
        email = normalize_email(email)
        errors = validate_sign_up(name, email, password)
        if errors:
            return AuthResult(errors=errors)

        is_bootstrap = bool(self._bootstrap_admin_email) and email == self._bootstrap_admin_email
        if not is_bootstrap and not check_whitelist(self._store, email):
            logger.info("Refused sign-up for non-whitelisted %s", email)
            return AuthResult(errors={"_form": [NOT_WHITELISTED_MESSAGE]})
        if self._store.get_user_by_email(email) is not None:
            return AuthResult(errors={"email": ["An account with this email already exists"]})

        user = User(
            email=email,
            name=name.strip(),
            role=UserRole.ADMIN if is_bootstrap else UserRole.READER,
            password_hash=hash_password(password),
        )
        self._store.add_user(user)
        return AuthResult(success=True, session=self._issue(user))

    def sign_in(self, email: str, password: str) -> AuthResult:
        email = normalize_email(email)
        if not EMAIL_RE.match(email):
            return AuthResult(errors={"email": ["Invalid email address"]})
        if not password:
            return AuthResult(errors={"password": ["Password is required"]})

        user = self._store.get_user_by_email(email)
        if user is None:
            return AuthResult(
                errors={"_form": ["This user does not exist. Please check your email or sign up."]}
            )
        if not verify_password(password, user.password_hash):
            return AuthResult(errors={"password": ["Invalid password"]})
        return AuthResult(success=True, session=self._issue(user))

    def sign_out(self) -> None:
        self._token = None


# ── Whitelist ────────────────────────────────────────────────────


def check_whitelist(store: AccountStore, email: str) -> bool:
    return store.find_whitelist(normalize_email(email)) is not None


def _admin_error(sessions: SessionProvider) -> str | None:
    try:
        require_role(sessions.get_current_session(), UserRole.ADMIN)
    except NotAuthenticatedError:
        return "Not authenticated"
    except PermissionDeniedError:
        return "Permission denied"
    return None


def get_whitelisted_users(store: AccountStore) -> list[WhitelistEntry]:
    return store.list_whitelist()


def add_whitelisted_user(
    store: AccountStore, sessions: SessionProvider, email: str
) -> AccountResult:
    if error := _admin_error(sessions):
        return AccountResult(error=error)
    email = normalize_email(email)
    if not EMAIL_RE.match(email):
        return AccountResult(error="Invalid email")
    if store.find_whitelist(email) is not None:
        return AccountResult(error="This user is already in the whitelist")
    try:
        entry = store.add_whitelist(email)
    except OSError:
        logger.exception("Failed to add %s to the whitelist", email)
        return AccountResult(error="Server error while adding user")
    return AccountResult(success=True, entry=entry)


def remove_whitelisted_user(
    store: AccountStore, sessions: SessionProvider, entry_id: int
) -> AccountResult:
    if error := _admin_error(sessions):
        return AccountResult(error=error)
    try:
        store.remove_whitelist(entry_id)
    except RecordNotFoundError:
        return AccountResult(error="Whitelist entry not found")
    except OSError:
        logger.exception("Failed to remove whitelist entry %d", entry_id)
        return AccountResult(error="Server error while removing user")
    return AccountResult(success=True)


# ── Roles ────────────────────────────────────────────────────────


def get_all_users(store: AccountStore) -> list[User]:
    return store.list_users()


def get_user_role(store: AccountStore, user_id: str) -> UserRole | None:
    user = store.get_user(user_id)
    return user.role if user is not None else None


def update_user_role(
    store: AccountStore, sessions: SessionProvider, user_id: str, role: str
) -> AccountResult:
    if error := _admin_error(sessions):
        return AccountResult(error=error)
    if not user_id:
        return AccountResult(error="User ID is required")
    try:
        new_role = UserRole(role.upper())
    except ValueError:
        return AccountResult(error="Invalid role")
    try:
        user = store.set_role(user_id, new_role)
    except RecordNotFoundError:
        return AccountResult(error="User not found")
    except OSError:
        logger.exception("Failed to update role of user %s", user_id)
        return AccountResult(error="Server error while updating user role")
    return AccountResult(success=True, user=user)
