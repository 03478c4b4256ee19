"""Content domain: structured article bodies and their store.

An article body is a list of sections of typed elements.  This package
holds the model, the persisted-content codec, the HTML importer and
exporters, the in-memory editing state, SEO scoring, and a JSON-backed
PostStore.
"""

from postdesk.content.codec import DecodedContent, DecodedKind, decode_content, encode_content
from postdesk.content.editor import ContentEditorState, SerializedContent, field_key
from postdesk.content.exporter import (
    DocumentMeta,
    extract_youtube_id,
    render_document,
    render_element,
    render_markdown,
    render_sections,
)
from postdesk.content.importer import import_html, load_structured
from postdesk.content.models import (
    BlogPostFormValues,
    BlogPostRecord,
    Category,
    ContentElement,
    ContentSection,
    ElementType,
    PostStatus,
    StructuredContent,
)
from postdesk.content.seo import analyze_form, generate_slug, score_form
from postdesk.content.store import PostStore

__all__ = [
    "BlogPostFormValues",
    "BlogPostRecord",
    "Category",
    "ContentEditorState",
    "ContentElement",
    "ContentSection",
    "DecodedContent",
    "DecodedKind",
    "DocumentMeta",
    "ElementType",
    "PostStatus",
    "PostStore",
    "SerializedContent",
    "StructuredContent",
    "analyze_form",
    "decode_content",
    "encode_content",
    "extract_youtube_id",
    "field_key",
    "generate_slug",
    "import_html",
    "load_structured",
    "render_document",
    "render_element",
    "render_markdown",
    "render_sections",
    "score_form",
]
