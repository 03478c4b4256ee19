"""JSON-backed article store.

Persists all BlogPostRecords and Categories in a single JSON file,
loaded on init and saved after every write operation.  Provides CRUD,
status filtering, category upsert and the single pinned-post slot.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from postdesk.content.models import BlogPostRecord, Category, PostStatus
from postdesk.errors import RecordNotFoundError
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

STORE_FILENAME = ".postdesk-store.json"

_PROTECTED_FIELDS = frozenset({"id", "created_at", "updated_at"})


class _StoreData(BaseModel):
    """Internal wrapper for JSON serialization."""

    posts: list[BlogPostRecord] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    next_post_id: int = 1
    next_category_id: int = 1


class PostStore:
    """JSON-backed CRUD store for articles and their categories.

    Loads the store file on init and saves after every mutation.
    """

    def __init__(self, store_dir: Path) -> None:
        self._path = store_dir / STORE_FILENAME
        self._data = self._load()

    @property
    def path(self) -> Path:
        return self._path

    # ── Private helpers ──────────────────────────────────────────

    def _load(self) -> _StoreData:
        if not self._path.exists():
            return _StoreData()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return _StoreData.model_validate(raw)
        except (json.JSONDecodeError, ValueError, KeyError):
            logger.warning("Corrupt post store at %s, starting fresh", self._path)
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

    def _find(self, post_id: int) -> BlogPostRecord | None:
        for record in self._data.posts:
            if record.id == post_id:
                return record
        return None

    def _require(self, post_id: int) -> BlogPostRecord:
        record = self._find(post_id)
        if record is None:
            raise RecordNotFoundError(f"post {post_id}")
        return record

    # ── Write operations ─────────────────────────────────────────

    def create(self, data: dict[str, Any]) -> BlogPostRecord:
        """Insert a new article, assigning its id and timestamps."""
        now = datetime.now(tz=UTC)
        fields = {k: v for k, v in data.items() if k not in _PROTECTED_FIELDS}
        draft = self._draft()
        record = BlogPostRecord.model_validate(
            {**fields, "id": draft.next_post_id, "created_at": now, "updated_at": now}
        )
        draft.posts.append(record)
        draft.next_post_id += 1
        self._commit(draft)
        logger.info("Created post %d (%s)", record.id, record.slug)
        return record

    def update(self, post_id: int, data: dict[str, Any]) -> BlogPostRecord:
        """Overwrite the given fields of an article.

        Raises RecordNotFoundError if the id does not exist.
        """
        current = self._require(post_id)
        fields = {k: v for k, v in data.items() if k not in _PROTECTED_FIELDS}
        merged = {**current.model_dump(), **fields, "updated_at": datetime.now(tz=UTC)}
        record = BlogPostRecord.model_validate(merged)
        draft = self._draft()
        draft.posts = [record if r.id == post_id else r for r in draft.posts]
        self._commit(draft)
        logger.info("Updated post %d (%s)", record.id, record.slug)
        return record

    def set_pinned(self, post_id: int, pinned: bool) -> BlogPostRecord:
        """Pin or unpin an article; pinning one unpins every other.

        Raises RecordNotFoundError if the id does not exist.
        """
        self._require(post_id)
        draft = self._draft()
        record = next(r for r in draft.posts if r.id == post_id)
        if pinned:
            for other in draft.posts:
                other.pinned = False
        record.pinned = pinned
        record.updated_at = datetime.now(tz=UTC)
        self._commit(draft)
        return record

    # ── Read operations ──────────────────────────────────────────

    def find_by_id(self, post_id: int) -> BlogPostRecord | None:
        """Return an article by id, or None if not found."""
        return self._find(post_id)

    def find_by_slug(self, slug: str) -> BlogPostRecord | None:
        for record in self._data.posts:
            if record.slug == slug:
                return record
        return None

    def find_many(self, status: PostStatus | None = None) -> list[BlogPostRecord]:
        """Return articles newest first, optionally filtered by status."""
        results = self._data.posts
        if status is not None:
            results = [r for r in results if r.status == status]
        return sorted(results, key=lambda r: (r.created_at, r.id), reverse=True)

    def count(self, status: PostStatus | None = None) -> int:
        return len(self.find_many(status))

    # ── Categories ───────────────────────────────────────────────

    def upsert_category(self, name: str) -> Category:
        """Return the category called ``name``, creating it on first use."""
        for category in self._data.categories:
            if category.name == name:
                return category
        draft = self._draft()
        category = Category(
            id=draft.next_category_id,
            name=name,
            description=f"Category for {name} posts",
        )
        draft.categories.append(category)
        draft.next_category_id += 1
        self._commit(draft)
        logger.info("Created category %r", name)
        return category

    def get_category(self, category_id: int | None) -> Category | None:
        if category_id is None:
            return None
        for category in self._data.categories:
            if category.id == category_id:
                return category
        return None

    def list_categories(self) -> list[Category]:
        return sorted(self._data.categories, key=lambda c: c.name)
