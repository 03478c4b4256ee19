"""Content domain models: pure Pydantic v2 data types.

An article body is a list of sections, each an ordered list of typed
elements.  The same tree is persisted as JSON (camelCase wire names, so
rows written by earlier releases keep loading) and rendered to HTML by
``postdesk.content.exporter``.  Form values and the persisted article
record live here too.
"""

from __future__ import annotations

import json
import uuid
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from postdesk.errors import ContentDecodeError
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class ElementType(StrEnum):
    """Known content element types."""

    H2 = "h2"
    H3 = "h3"
    PARAGRAPH = "paragraph"
    IMAGE = "image"
    VIDEO = "video"
    LIST = "list"


class PostStatus(StrEnum):
    """Persisted publication status of an article."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


def new_id() -> str:
    return uuid.uuid4().hex


class ContentElement(BaseModel):
    """One semantic unit inside a section.

    ``type`` is kept as a plain string: values outside ``ElementType``
    still load and render as paragraphs.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    type: str
    content: str = ""
    url: str | None = None  # image, video
    alt: str | None = None  # image
    list_items: list[str] | None = Field(default=None, alias="listItems")


class ContentSection(BaseModel):
    """An ordered container of elements."""

    id: str = Field(min_length=1)
    title: str | None = None
    elements: list[ContentElement] = Field(default_factory=list)


StructuredContent = list[ContentSection]

_sections_adapter = TypeAdapter(list[ContentSection])


def new_section() -> ContentSection:
    return ContentSection(id=new_id(), elements=[])


def new_element(element_type: ElementType | str, content: str = "") -> ContentElement:
    """Build an empty element of a known type.

    List elements start with a single empty item.
    """
    kind = ElementType(element_type)
    return ContentElement(
        id=new_id(),
        type=kind.value,
        content=content,
        list_items=[""] if kind is ElementType.LIST else None,
    )


def parse_structured(value: str | list[Any]) -> StructuredContent:
    """Validate JSON text or a decoded list as a non-empty list of sections.

    Raises:
        ContentDecodeError: If the value is not JSON, not a list, empty,
            or any section/element is malformed.
    """
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise ContentDecodeError(f"not JSON: {exc}") from exc
    if not isinstance(value, list) or not value:
        raise ContentDecodeError("expected a non-empty list of sections")
    try:
        return _sections_adapter.validate_python(value)
    except ValidationError as exc:
        raise ContentDecodeError(str(exc)) from exc


def dump_structured(sections: StructuredContent) -> str:
    """Serialize sections to the persisted JSON form."""
    return _sections_adapter.dump_json(sections, by_alias=True, exclude_none=True).decode(
        "utf-8"
    )


def sections_to_data(sections: StructuredContent) -> list[dict[str, Any]]:
    return _sections_adapter.dump_python(sections, by_alias=True, exclude_none=True)


class Category(BaseModel):
    """Article category, created on first use."""

    id: int
    name: str
    description: str | None = None


class BlogPostFormValues(BaseModel):
    """Values held by the article edit form.

    ``structured_content`` is the source of truth.  ``content`` (fragment
    HTML) and ``generated_html`` (standalone document) are derived from it
    and regenerated whenever it changes.
    """

    # metadata
    title: str = ""
    slug: str = ""
    excerpt: str = ""
    status: str = "draft"
    category: str = "blog"

    # header
    author: str = ""
    author_link: str = ""
    publish_date: str = Field(default_factory=lambda: date.today().isoformat())

    # introduction
    intro_text: str = ""
    main_image_url: str = ""
    main_image_alt: str = ""
    main_image_caption: str = ""

    # body
    content: str = ""
    structured_content: StructuredContent | None = None
    generated_html: str = ""

    tags: str = ""


class BlogPostRecord(BaseModel):
    """A persisted article row."""

    id: int
    title: str
    slug: str
    meta_description: str = ""
    meta_keywords: list[str] = Field(default_factory=list)
    excerpt: str = ""  # the intro text
    main_image_url: str = ""
    main_image_alt: str = ""
    main_image_caption: str = ""
    content: str = ""  # structured JSON, or raw HTML for legacy rows
    generated_html: str = ""
    generated_article_html: str = ""
    json_ld: str = ""
    status: PostStatus = PostStatus.DRAFT
    published: bool = False
    pinned: bool = False
    category_id: int | None = None
    author: str = ""
    author_link: str = ""
    publish_date: str = ""
    tags: str = ""
    created_at: datetime
    updated_at: datetime
