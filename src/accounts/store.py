"""JSON-backed store for users and the sign-up whitelist.

Same persistence scheme as the post store: one JSON file, loaded on
init and saved after every write.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from postdesk.accounts.models import User, UserRole, WhitelistEntry
from postdesk.errors import RecordNotFoundError
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

STORE_FILENAME = ".postdesk-accounts.json"


class _StoreData(BaseModel):
    """Internal wrapper for JSON serialization."""

    users: list[User] = Field(default_factory=list)
    whitelist: list[WhitelistEntry] = Field(default_factory=list)
    next_whitelist_id: int = 1


class AccountStore:
    """Users and whitelist entries, keyed by id and unique by email."""

    def __init__(self, store_dir: Path) -> None:
        self._path = store_dir / STORE_FILENAME
        self._data = self._load()

    # ── Private helpers ──────────────────────────────────────────

    def _load(self) -> _StoreData:
        if not self._path.exists():
            return _StoreData()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return _StoreData.model_validate(raw)
        except (json.JSONDecodeError, ValueError, KeyError):
            logger.warning("Corrupt account store at %s, starting fresh", self._path)
            return _StoreData()

    def _commit(self, draft: _StoreData) -> None:
        """Write ``draft`` to disk, then make it the live state.

        A failed write leaves the in-memory store untouched.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            draft.model_dump_json(indent=2),
            encoding="utf-8",
        )
        self._data = draft

    def _draft(self) -> _StoreData:
        return self._data.model_copy(deep=True)

    # ── Users ────────────────────────────────────────────────────

    def add_user(self, user: User) -> User:
        """Insert a user.

        Raises ValueError if the email is already registered.
        """
        if self.get_user_by_email(user.email) is not None:
            raise ValueError(f"email already registered: {user.email}")
        draft = self._draft()
        draft.users.append(user)
        self._commit(draft)
        logger.info("Registered user %s as %s", user.email, user.role)
        return user

    def get_user(self, user_id: str) -> User | None:
        for user in self._data.users:
            if user.id == user_id:
                return user
        return None

    def get_user_by_email(self, email: str) -> User | None:
        for user in self._data.users:
            if user.email == email:
                return user
        return None

    def list_users(self) -> list[User]:
        return sorted(self._data.users, key=lambda u: u.email)

    def set_role(self, user_id: str, role: UserRole) -> User:
        """Change a user's role.

        Raises RecordNotFoundError if the id does not exist.
        """
        draft = self._draft()
        user = next((u for u in draft.users if u.id == user_id), None)
        if user is None:
            raise RecordNotFoundError(f"user {user_id}")
        user.role = role
        self._commit(draft)
        logger.info("Set role of %s to %s", user.email, role)
        return user

    # ── Whitelist ────────────────────────────────────────────────

    def add_whitelist(self, email: str) -> WhitelistEntry:
        draft = self._draft()
        entry = WhitelistEntry(id=draft.next_whitelist_id, email=email)
        draft.whitelist.append(entry)
        draft.next_whitelist_id += 1
        self._commit(draft)
        logger.info("Whitelisted %s", email)
        return entry

    def remove_whitelist(self, entry_id: int) -> None:
        """Delete a whitelist entry.

        Raises RecordNotFoundError if the id does not exist.
        """
        remaining = [e for e in self._data.whitelist if e.id != entry_id]
        if len(remaining) == len(self._data.whitelist):
            raise RecordNotFoundError(f"whitelist entry {entry_id}")
        draft = self._draft()
        draft.whitelist = remaining
        self._commit(draft)
        logger.info("Removed whitelist entry %d", entry_id)

    def find_whitelist(self, email: str) -> WhitelistEntry | None:
        for entry in self._data.whitelist:
            if entry.email == email:
                return entry
        return None

    def list_whitelist(self) -> list[WhitelistEntry]:
        return sorted(self._data.whitelist, key=lambda e: e.email)
