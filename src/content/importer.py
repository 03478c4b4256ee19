"""Import legacy HTML article bodies into structured sections.

Only ``<section>``, ``<h2>``, ``<h3>`` and ``<p>`` are recognized.  The
scan is regex based rather than a full parser: inputs are either our own
fragment export or simple legacy rows, and matches must come back in
source order.
"""

from __future__ import annotations

import logging
import re
from typing import Any, NamedTuple

from postdesk.content.models import (
    ContentElement,
    ContentSection,
    ElementType,
    StructuredContent,
    new_id,
    parse_structured,
)
from postdesk.errors import ContentDecodeError

logger = logging.getLogger(__name__)

_SECTION_RE = re.compile(r"<section\b[^>]*>(.*?)</section>", re.DOTALL | re.IGNORECASE)

_TAG_PATTERNS: tuple[tuple[ElementType, re.Pattern[str]], ...] = (
    (ElementType.H2, re.compile(r"<h2\b[^>]*>(.*?)</h2>", re.DOTALL | re.IGNORECASE)),
    (ElementType.H3, re.compile(r"<h3\b[^>]*>(.*?)</h3>", re.DOTALL | re.IGNORECASE)),
    (ElementType.PARAGRAPH, re.compile(r"<p\b[^>]*>(.*?)</p>", re.DOTALL | re.IGNORECASE)),
)


class _Match(NamedTuple):
    offset: int
    type: ElementType
    text: str


def _scan(html: str) -> list[_Match]:
    found = [
        _Match(m.start(), kind, m.group(1))
        for kind, pattern in _TAG_PATTERNS
        for m in pattern.finditer(html)
    ]
    found.sort(key=lambda m: m.offset)
    return found


def _import_block(html: str) -> ContentSection:
    section = ContentSection(id=new_id(), elements=[])
    matches = _scan(html)
    if matches:
        section.elements = [
            ContentElement(id=new_id(), type=m.type.value, content=m.text) for m in matches
        ]
    elif html.strip():
        section.elements = [
            ContentElement(id=new_id(), type=ElementType.PARAGRAPH.value, content=html)
        ]
    return section


def import_html(html: str) -> StructuredContent:
    """Build sections from raw HTML, preserving reading order.

    Each ``<section>`` block becomes a section; without any, the whole
    string is a single section.  A block with no recognized tags keeps
    its text verbatim in one paragraph.
    """
    blocks = [m.group(1) for m in _SECTION_RE.finditer(html or "")]
    if not blocks:
        blocks = [html or ""]
    sections = [_import_block(block) for block in blocks]
    logger.debug(
        "Imported %d section(s), %d element(s) from HTML",
        len(sections),
        sum(len(s.elements) for s in sections),
    )
    return sections


def load_structured(value: str | list[Any] | None) -> StructuredContent:
    """Load persisted content, falling back to HTML import.

    JSON that is not a non-empty list of well-formed sections is imported
    as HTML instead of raising.
    """
    if value is None:
        return import_html("")
    try:
        return parse_structured(value)
    except ContentDecodeError as exc:
        logger.debug("Content is not structured JSON (%s), importing as HTML", exc)
    if isinstance(value, list):
        return import_html("")
    return import_html(value)
