"""Decode and encode the persisted ``content`` field of an article.

Rows hold one of three shapes, tried in this order:

1. a JSON array of sections (current format);
2. ``<!-- STRUCTURED_CONTENT_JSON:{json}-->`` followed by raw HTML
   (legacy format, read but never written);
3. opaque raw HTML.

Decoding never raises; each failure falls through to the next shape.
"""

from __future__ import annotations

import logging
from enum import StrEnum

from postdesk.content.exporter import render_sections
from postdesk.content.models import StructuredContent, dump_structured, parse_structured
from postdesk.errors import ContentDecodeError
from pydantic import BaseModel

logger = logging.getLogger(__name__)

STRUCTURED_CONTENT_PREFIX = "<!-- STRUCTURED_CONTENT_JSON:"
STRUCTURED_CONTENT_SUFFIX = "-->"


class DecodedKind(StrEnum):
    STRUCTURED = "structured"
    RAW_HTML = "raw_html"


class DecodedContent(BaseModel):
    """Tagged decode result.

    ``sections`` is set only for ``STRUCTURED``.  ``raw_html`` is the
    display HTML: rendered from the sections for the current format, the
    trailing HTML for the legacy format, or the input itself.
    """

    kind: DecodedKind
    raw_html: str = ""
    sections: StructuredContent | None = None

    @property
    def is_structured(self) -> bool:
        return self.kind is DecodedKind.STRUCTURED


def _decode_json(content: str) -> DecodedContent | None:
    try:
        sections = parse_structured(content)
    except ContentDecodeError:
        return None
    return DecodedContent(
        kind=DecodedKind.STRUCTURED,
        raw_html=render_sections(sections),
        sections=sections,
    )


def _decode_legacy(content: str) -> DecodedContent | None:
    if not content.startswith(STRUCTURED_CONTENT_PREFIX):
        return None
    end = content.find(STRUCTURED_CONTENT_SUFFIX, len(STRUCTURED_CONTENT_PREFIX))
    if end == -1:
        return None
    try:
        sections = parse_structured(content[len(STRUCTURED_CONTENT_PREFIX) : end])
    except ContentDecodeError as exc:
        logger.debug("Legacy structured content marker with unreadable JSON: %s", exc)
        return None
    trailing = content[end + len(STRUCTURED_CONTENT_SUFFIX) :].strip()
    return DecodedContent(kind=DecodedKind.STRUCTURED, raw_html=trailing, sections=sections)


def decode_content(content: str | None) -> DecodedContent:
    """Decode a persisted ``content`` value."""
    if not content:
        return DecodedContent(kind=DecodedKind.RAW_HTML, raw_html="")
    for decoder in (_decode_json, _decode_legacy):
        decoded = decoder(content)
        if decoded is not None:
            logger.debug("Decoded content via %s", decoder.__name__)
            return decoded
    logger.debug("Content treated as raw HTML (%d chars)", len(content))
    return DecodedContent(kind=DecodedKind.RAW_HTML, raw_html=content)


def encode_content(raw_content: str, sections: StructuredContent | None) -> str:
    """Value to persist: the JSON array when sections exist, else the raw content."""
    if not sections:
        return raw_content
    return dump_structured(sections)
