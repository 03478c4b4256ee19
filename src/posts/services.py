"""Backoffice actions on blog articles.

Every action checks the current session, works on a copy of the caller's
form, and reports its outcome as an ``ActionResult`` rather than raising,
so a failed save can be retried without re-entering anything.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import UTC, datetime
from typing import Any

from postdesk.accounts.models import Session, UserRole
from postdesk.accounts.services import SessionProvider, require_role
from postdesk.config import PostdeskConfig
from postdesk.content.codec import decode_content, encode_content
from postdesk.content.exporter import (
    DocumentMeta,
    extract_article,
    render_document,
    render_json_ld,
    render_sections,
)
from postdesk.content.models import (
    BlogPostFormValues,
    BlogPostRecord,
    Category,
    ContentElement,
    ContentSection,
    ElementType,
    PostStatus,
    StructuredContent,
    new_id,
)
from postdesk.content.seo import generate_slug
from postdesk.content.store import PostStore
from postdesk.errors import NotAuthenticatedError, PermissionDeniedError, RecordNotFoundError
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_CONTENT = "New content"

_URL_RE = re.compile(r"^https?://\S+$")

_REQUIRED_FIELDS: dict[str, str] = {
    "title": "Title is required",
    "slug": "Slug is required",
    "excerpt": "Excerpt is required",
    "category": "Category is required",
    "author": "Author is required",
    "publish_date": "Publish date is required",
}

_WRITE_ROLES = (UserRole.ADMIN, UserRole.EDITOR)


class EditablePost(BaseModel):
    """A stored article decoded for the editor."""

    record: BlogPostRecord
    category: Category | None = None
    structured_content: StructuredContent | None = None
    content: str = ""
    generated_html: str = ""
    generated_article_html: str = ""


class PostMetrics(BaseModel):
    draft_count: int = 0
    published_count: int = 0


class ActionResult(BaseModel):
    """Outcome of a backoffice action.

    Exactly one of ``success`` or ``error`` is meaningful; the payload
    fields are set by the actions that produce them.
    """

    success: bool = False
    error: str | None = None
    field_errors: dict[str, str] = Field(default_factory=dict)
    post: BlogPostRecord | None = None
    editable: EditablePost | None = None
    posts: list[BlogPostRecord] = Field(default_factory=list)
    metrics: PostMetrics | None = None
    html: str | None = None


# ── Form handling ────────────────────────────────────────────────


def validate_form(form: BlogPostFormValues) -> dict[str, str]:
    """Field errors for the article form; empty when valid."""
    errors = {
        name: message
        for name, message in _REQUIRED_FIELDS.items()
        if not str(getattr(form, name)).strip()
    }
    if form.author_link and not _URL_RE.match(form.author_link):
        errors["author_link"] = "Author link must be an http(s) URL"
    return errors


def parse_tags(tags: str) -> list[str]:
    """Tags as a list, from a JSON array or a comma-separated string."""
    if not tags:
        return []
    if tags.lstrip().startswith("["):
        try:
            parsed = json.loads(tags)
        except json.JSONDecodeError:
            logger.warning("Unreadable tag list %r", tags)
            return []
        return [str(t).strip() for t in parsed if str(t).strip()]
    return [t.strip() for t in tags.split(",") if t.strip()]


def prepare_form(form: BlogPostFormValues, *, lang: str = "en") -> BlogPostFormValues:
    """Return a copy of the form with its derived fields regenerated.

    A form without structured content gets one section holding its raw
    content as a paragraph.  An empty slug is derived from the title.
    """
    prepared = form.model_copy(deep=True)
    if not prepared.structured_content:
        prepared.structured_content = [
            ContentSection(
                id=new_id(),
                elements=[
                    ContentElement(
                        id=new_id(),
                        type=ElementType.PARAGRAPH.value,
                        content=prepared.content or DEFAULT_CONTENT,
                    )
                ],
            )
        ]
    if not prepared.slug and prepared.title:
        prepared.slug = generate_slug(prepared.title)
    prepared.content = render_sections(prepared.structured_content)
    prepared.generated_html = render_document(
        prepared.structured_content, DocumentMeta.from_form(prepared, lang=lang)
    )
    return prepared


class PostService:
    """Article actions for the signed-in user."""

    def __init__(
        self,
        store: PostStore,
        sessions: SessionProvider,
        config: PostdeskConfig | None = None,
    ) -> None:
        self._store = store
        self._sessions = sessions
        self._config = config or PostdeskConfig()

    # ── Private helpers ──────────────────────────────────────────

    def _authorize(self, *roles: UserRole) -> tuple[Session | None, str | None]:
        try:
            return require_role(self._sessions.get_current_session(), *roles), None
        except NotAuthenticatedError:
            return None, "Not authenticated"
        except PermissionDeniedError:
            return None, "Permission denied"

    def _article_url(self, slug: str) -> str:
        base = self._config.site.url.rstrip("/")
        return f"{base}/{slug}" if base and slug else ""

    def _record_fields(
        self, form: BlogPostFormValues, created_at: datetime | None
    ) -> dict[str, Any]:
        sections = form.structured_content or []
        meta = DocumentMeta.from_form(form, lang=self._config.site.lang)
        json_ld = render_json_ld(
            meta,
            publisher=self._config.site.name,
            logo_url=self._config.site.logo_url,
            published_at=form.publish_date or (created_at or datetime.now(tz=UTC)).isoformat(),
            url=self._article_url(form.slug),
        )
        category = self._store.upsert_category(form.category)
        is_published = form.status.lower() == "published"
        return {
            "title": form.title,
            "slug": form.slug,
            "meta_description": form.excerpt,
            "meta_keywords": parse_tags(form.tags),
            "excerpt": form.intro_text,
            "main_image_url": form.main_image_url,
            "main_image_alt": form.main_image_alt,
            "main_image_caption": form.main_image_caption,
            "content": encode_content(form.content, sections),
            "generated_html": form.generated_html,
            "generated_article_html": extract_article(form.generated_html),
            "json_ld": json_ld,
            "status": PostStatus.PUBLISHED if is_published else PostStatus.DRAFT,
            "published": is_published,
            "category_id": category.id,
            "author": form.author,
            "author_link": form.author_link,
            "publish_date": form.publish_date,
            "tags": form.tags,
        }

    def _prepare_and_validate(
        self, form: BlogPostFormValues
    ) -> tuple[BlogPostFormValues, dict[str, str]]:
        prepared = prepare_form(form, lang=self._config.site.lang)
        return prepared, validate_form(prepared)

    # ── Writes ───────────────────────────────────────────────────

    def create_post(self, form: BlogPostFormValues) -> ActionResult:
        _, error = self._authorize(*_WRITE_ROLES)
        if error:
            return ActionResult(error=error)
        prepared, field_errors = self._prepare_and_validate(form)
        if field_errors:
            return ActionResult(error="Invalid form", field_errors=field_errors)
        try:
            post = self._store.create(self._record_fields(prepared, None))
        except (OSError, ValueError):
            logger.exception("Failed to create blog post %r", form.slug)
            return ActionResult(error="Failed to create blog post")
        return ActionResult(success=True, post=post)

    def update_post(self, post_id: int, form: BlogPostFormValues) -> ActionResult:
        _, error = self._authorize(*_WRITE_ROLES)
        if error:
            return ActionResult(error=error)
        prepared, field_errors = self._prepare_and_validate(form)
        if field_errors:
            return ActionResult(error="Invalid form", field_errors=field_errors)
        try:
            existing = self._store.find_by_id(post_id)
            if existing is None:
                raise RecordNotFoundError(f"post {post_id}")
            post = self._store.update(post_id, self._record_fields(prepared, existing.created_at))
        except (OSError, ValueError, RecordNotFoundError):
            logger.exception("Error when updating the article %d", post_id)
            return ActionResult(error="Error when updating the article")
        return ActionResult(success=True, post=post)

    def toggle_pin(self, post_id: int, pinned: bool) -> ActionResult:
        _, error = self._authorize(*_WRITE_ROLES)
        if error:
            return ActionResult(error=error)
        try:
            post = self._store.set_pinned(post_id, pinned)
        except RecordNotFoundError:
            return ActionResult(error="Article not found")
        except OSError:
            logger.exception("Failed to change the pinned state of post %d", post_id)
            return ActionResult(error="Error when updating the pinned state")
        return ActionResult(success=True, post=post)

    # ── Reads ────────────────────────────────────────────────────

    def get_post(self, post_id: int) -> ActionResult:
        """Load an article and decode its body for editing."""
        _, error = self._authorize()
        if error:
            return ActionResult(error=error)
        record = self._store.find_by_id(post_id)
        if record is None:
            return ActionResult(error="Article not found")

        decoded = decode_content(record.content)
        generated_html = record.generated_html or decoded.raw_html
        editable = EditablePost(
            record=record,
            category=self._store.get_category(record.category_id),
            structured_content=decoded.sections,
            content=decoded.raw_html if decoded.is_structured else record.content,
            generated_html=generated_html,
            generated_article_html=(
                record.generated_article_html or extract_article(generated_html)
            ),
        )
        return ActionResult(success=True, post=record, editable=editable)

    def list_posts(self, status: PostStatus | None = None) -> ActionResult:
        _, error = self._authorize()
        if error:
            return ActionResult(error=error)
        return ActionResult(success=True, posts=self._store.find_many(status))

    def post_metrics(self) -> ActionResult:
        _, error = self._authorize()
        if error:
            return ActionResult(error=error)
        metrics = PostMetrics(
            draft_count=self._store.count(PostStatus.DRAFT),
            published_count=self._store.count(PostStatus.PUBLISHED),
        )
        return ActionResult(success=True, metrics=metrics)

    def get_generated_html(self, post_id: int) -> ActionResult:
        _, error = self._authorize()
        if error:
            return ActionResult(error=error)
        record = self._store.find_by_id(post_id)
        if record is None:
            return ActionResult(error="Article not found")
        return ActionResult(success=True, post=record, html=record.generated_html)

    def get_categories(self) -> list[Category]:
        return self._store.list_categories()


def to_form_values(editable: EditablePost) -> BlogPostFormValues:
    """Form values for editing a stored article."""
    record = editable.record
    return BlogPostFormValues(
        title=record.title,
        slug=record.slug,
        excerpt=record.meta_description,
        status="published" if record.status is PostStatus.PUBLISHED else "draft",
        category=editable.category.name if editable.category else "blog",
        author=record.author,
        author_link=record.author_link,
        publish_date=record.publish_date or record.created_at.date().isoformat(),
        intro_text=record.excerpt,
        main_image_url=record.main_image_url,
        main_image_alt=record.main_image_alt,
        main_image_caption=record.main_image_caption,
        content=editable.content,
        structured_content=editable.structured_content,
        generated_html=editable.generated_html,
        tags=record.tags,
    )
