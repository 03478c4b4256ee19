"""Render structured content to HTML.

Two outputs come from the same section tree: a fragment (one
``<section>`` per section) for the live preview and the persisted
``content`` display field, and a standalone document with head metadata
and typography for SEO preview and public display.  A markdown rendering
is kept for plain-text consumers.
"""

from __future__ import annotations

import json
import re
from datetime import UTC, datetime
from html import escape

from postdesk.content.models import (
    BlogPostFormValues,
    ContentElement,
    ContentSection,
    ElementType,
    StructuredContent,
)
from postdesk.content.seo import generate_slug
from pydantic import BaseModel

_YOUTUBE_RE = re.compile(r"^.*(youtu.be\/|v\/|u\/\w\/|embed\/|watch\?v=|&v=)([^#&?]*).*")
_YOUTUBE_ID_LENGTH = 11

_ARTICLE_RE = re.compile(r"<article>([\s\S]*?)</article>", re.IGNORECASE)
_BODY_RE = re.compile(r"<body[^>]*>([\s\S]*?)</body>", re.IGNORECASE)
_ARTICLE_ANY_RE = re.compile(r"<article[^>]*>[\s\S]*?</article>", re.IGNORECASE)


def _attr(value: str | None) -> str:
    return escape(value or "", quote=True)


# ---------------------------------------------------------------------------
# Fragment export
# ---------------------------------------------------------------------------


def extract_youtube_id(url: str | None) -> str | None:
    """Return the 11-character YouTube video id in ``url``, or None.

    Any 11-character capture is accepted whatever its characters.
    """
    match = _YOUTUBE_RE.match(url or "")
    if match and len(match.group(2)) == _YOUTUBE_ID_LENGTH:
        return match.group(2)
    return None


def _render_list(element: ContentElement) -> str:
    if not element.list_items:
        return ""
    items = "\n".join(f"    <li>{item}</li>" for item in element.list_items)
    return f"  <ul>\n{items}\n  </ul>"


def _render_image(element: ContentElement) -> str:
    return (
        "  <figure>\n"
        f'    <img src="{_attr(element.url)}" alt="{_attr(element.alt)}" />\n'
        f"    <figcaption>{element.content}</figcaption>\n"
        "  </figure>"
    )


def _render_video(element: ContentElement) -> str:
    video_id = extract_youtube_id(element.url)
    if video_id is not None:
        player = (
            '<iframe width="560" height="315" '
            f'src="https://www.youtube.com/embed/{_attr(video_id)}" '
            'frameborder="0" allowfullscreen></iframe>'
        )
    else:
        player = f'<video controls src="{_attr(element.url)}"></video>'
    return (
        '  <figure class="video">\n'
        f"    {player}\n"
        f"    <figcaption>{element.content}</figcaption>\n"
        "  </figure>"
    )


def render_element(element: ContentElement) -> str:
    """Render one element; unknown types render as paragraphs."""
    match element.type:
        case ElementType.H2:
            return f"  <h2>{element.content}</h2>"
        case ElementType.H3:
            return f"  <h3>{element.content}</h3>"
        case ElementType.LIST:
            return _render_list(element)
        case ElementType.IMAGE:
            return _render_image(element)
        case ElementType.VIDEO:
            return _render_video(element)
        case _:
            return f"  <p>{element.content}</p>"


def render_section(section: ContentSection) -> str:
    body = "\n\n".join(render_element(e) for e in section.elements)
    return f"<section>\n{body}\n</section>"


def render_sections(sections: StructuredContent) -> str:
    """Fragment export: one ``<section>`` block per section."""
    return "\n\n".join(render_section(s) for s in sections)


# ---------------------------------------------------------------------------
# Markdown export
# ---------------------------------------------------------------------------


def _markdown_element(element: ContentElement) -> str:
    match element.type:
        case ElementType.H2:
            return f"## {element.content}\n\n"
        case ElementType.H3:
            return f"### {element.content}\n\n"
        case ElementType.LIST:
            if element.list_items:
                return "\n".join(f"- {item}" for item in element.list_items) + "\n\n"
            return ""
        case ElementType.IMAGE:
            return f"![{element.alt or ''}]({element.url or ''})\n{element.content}\n\n"
        case ElementType.VIDEO:
            return f"[Video: {element.content}]({element.url or ''})\n\n"
        case _:
            return f"{element.content}\n\n"


def render_markdown(sections: StructuredContent) -> str:
    """Plain markdown rendering of the tree."""
    return "\n".join(
        "".join(_markdown_element(e) for e in section.elements) for section in sections
    )


# ---------------------------------------------------------------------------
# Full document export
# ---------------------------------------------------------------------------


class DocumentMeta(BaseModel):
    """Optional metadata wrapped around the sections in a full document."""

    title: str = ""
    description: str = ""
    author: str = ""
    author_link: str = ""
    published_at: str = ""
    category: str = ""
    main_image_url: str = ""
    main_image_alt: str = ""
    main_image_caption: str = ""
    intro_text: str = ""
    tags: str | list[str] = ""
    lang: str = "en"

    @classmethod
    def from_form(cls, form: BlogPostFormValues, *, lang: str = "en") -> DocumentMeta:
        return cls(
            title=form.title,
            description=form.excerpt,
            author=form.author,
            author_link=form.author_link,
            published_at=form.publish_date,
            category=form.category,
            main_image_url=form.main_image_url,
            main_image_alt=form.main_image_alt,
            main_image_caption=form.main_image_caption,
            intro_text=form.intro_text,
            tags=form.tags,
            lang=lang,
        )


_STYLESHEET = """\
        body {
            font-family: 'Poppins', 'Helvetica Neue', Arial, sans-serif;
            line-height: 1.6;
            color: #333;
            max-width: 800px;
            margin: 0 auto;
            padding: 20px;
        }
        h1 { font-size: 2.5em; margin-bottom: 0.5em; }
        h2 { font-size: 1.8em; margin-top: 1.5em; margin-bottom: 0.5em; }
        h3 { font-size: 1.4em; margin-top: 1.2em; margin-bottom: 0.5em; }
        h1, h2, h3 {
            font-family: 'Bebas Neue', 'Impact', sans-serif;
            text-transform: uppercase;
            letter-spacing: 1px;
        }
        p { margin-bottom: 1em; }
        figure { margin: 2em 0; }
        img { max-width: 100%; height: auto; display: block; margin: 0 auto; }
        figcaption { text-align: center; font-style: italic; margin-top: 0.5em; color: #666; }
        .article-meta { font-size: 0.9em; color: #666; margin-bottom: 2em; }
        .article-intro { font-size: 1.1em; line-height: 1.8; margin-bottom: 2em; }
        .category {
            display: inline-block;
            padding: 0.25rem 0.75rem;
            border-radius: 9999px;
            font-size: 0.875rem;
            font-weight: 500;
        }
        .tags { margin-top: 2rem; padding-top: 1.5rem; border-top: 1px solid #eaeaea; }
        .tags ul { list-style: none; padding: 0; display: flex; flex-wrap: wrap; gap: 0.25rem; }
        a[rel="tag"] {
            display: inline-block;
            background-color: #f0f0f0;
            color: #333;
            padding: 0.25rem 0.75rem;
            border-radius: 9999px;
            border: 1px solid #ddd;
            text-decoration: none;
        }
        @media (prefers-color-scheme: dark) {
            body { color: #e5e7eb; background-color: #1f2937; }
            h1, h2, h3 { color: #f9fafb; }
            p { color: #d1d5db; }
            figcaption, .article-meta { color: #9ca3af; }
            a[rel="tag"] { background-color: #374151; color: #e5e7eb; border-color: #4b5563; }
        }"""


def category_colors(category: str) -> tuple[str, str, str]:
    """Badge (background, text, border) colours for a category name."""
    name = category.lower()
    if "provenance" in name:
        return "#6A1B9A", "#FFFFFF", "#4A148C"
    if "blog" in name:
        return "#00796B", "#FFFFFF", "#004D40"
    if "news" in name or "actualité" in name:
        return "#D81B60", "#FFFFFF", "#AD1457"
    if "guide" in name or "tutorial" in name:
        return "#F57F17", "#000000", "#E65100"
    return "#9C27B0", "#FFFFFF", "#7B1FA2"


def split_tags(tags: str | list[str]) -> list[str]:
    if isinstance(tags, str):
        return [t.strip() for t in tags.split(",") if t.strip()]
    return [t for t in tags if t]


def render_tags(tags: str | list[str]) -> str:
    """Render the tags block; empty when there are no tags."""
    names = split_tags(tags)
    if not names:
        return ""
    items = "\n".join(
        f'    <li><a href="/tags/{_attr(generate_slug(name))}" rel="tag">{escape(name)}</a></li>'
        for name in names
    )
    return (
        '<section class="tags">\n'
        "  <h2>Tags</h2>\n"
        "  <ul>\n"
        f"{items}\n"
        "  </ul>\n"
        "</section>"
    )


def _format_date(value: str) -> str | None:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def _head(meta: DocumentMeta, title: str) -> list[str]:
    lines = [
        '    <meta charset="UTF-8">',
        '    <meta name="viewport" content="width=device-width, initial-scale=1.0">',
        f"    <title>{escape(title)}</title>",
    ]
    if meta.description:
        lines.append(f'    <meta name="description" content="{_attr(meta.description)}">')
    if meta.author:
        lines.append(f'    <meta name="author" content="{_attr(meta.author)}">')
    lines.append(f'    <meta property="og:title" content="{_attr(title)}">')
    if meta.description:
        lines.append(f'    <meta property="og:description" content="{_attr(meta.description)}">')
    if meta.main_image_url:
        lines.append(f'    <meta property="og:image" content="{_attr(meta.main_image_url)}">')
    lines.append('    <meta property="og:type" content="article">')
    lines.append("    <style>")
    lines.append(_STYLESHEET)
    lines.append("    </style>")
    return lines


def _header(meta: DocumentMeta, title: str) -> list[str]:
    lines = ["        <header>", f"            <h1>{escape(title)}</h1>"]

    byline: list[str] = []
    if meta.author:
        name = escape(meta.author)
        if meta.author_link:
            name = f'<a href="{_attr(meta.author_link)}">{name}</a>'
        byline.append(f'<span class="author">By {name}</span>')
    if meta.published_at:
        label = _format_date(meta.published_at)
        if label:
            byline.append(f'<time datetime="{_attr(meta.published_at)}">{label}</time>')
    if meta.category:
        bg, fg, border = category_colors(meta.category)
        byline.append(
            f'<span class="category" style="background-color: {bg}; color: {fg}; '
            f'border: 1px solid {border};">{escape(meta.category)}</span>'
        )
    if byline:
        lines.append('            <div class="article-meta">')
        lines.extend(f"                {part}" for part in byline)
        lines.append("            </div>")

    if meta.main_image_url:
        lines.append('            <figure class="main-image">')
        lines.append(
            f'                <img src="{_attr(meta.main_image_url)}" '
            f'alt="{_attr(meta.main_image_alt)}" />'
        )
        if meta.main_image_caption:
            lines.append(f"                <figcaption>{meta.main_image_caption}</figcaption>")
        lines.append("            </figure>")
    if meta.intro_text:
        lines.append(f'            <div class="article-intro">{meta.intro_text}</div>')
    lines.append("        </header>")
    return lines


def render_document(
    sections: StructuredContent,
    meta: DocumentMeta | None = None,
    *,
    default_title: str = "Blog article",
) -> str:
    """Full standalone HTML document for SEO preview and public display.

    Every metadata field is optional; empty fields are left out.
    """
    meta = meta or DocumentMeta()
    title = meta.title or default_title
    tags_html = render_tags(meta.tags)

    lines = ["<!DOCTYPE html>", f'<html lang="{_attr(meta.lang)}">', "<head>"]
    lines.extend(_head(meta, title))
    lines.extend(["</head>", "<body>", "    <article>"])
    lines.extend(_header(meta, title))
    lines.append('        <div class="article-content">')
    lines.append(render_sections(sections))
    if tags_html:
        lines.append(tags_html)
    lines.extend(["        </div>", "    </article>", "</body>", "</html>"])
    return "\n".join(lines)


def extract_article(document: str) -> str:
    """Return the ``<article>`` element of a rendered document.

    Falls back to the body content wrapped in ``<article>``; returns an
    empty string when neither is present.
    """
    if not document:
        return ""
    match = _ARTICLE_RE.search(document)
    if match and match.group(1):
        return f"<article>{match.group(1)}</article>"
    body = _BODY_RE.search(document)
    if body and body.group(1):
        content = body.group(1).strip()
        inner = _ARTICLE_ANY_RE.search(content)
        if inner:
            return inner.group(0)
        return f"<article>{content}</article>"
    return ""


def render_json_ld(
    meta: DocumentMeta,
    *,
    publisher: str,
    logo_url: str = "",
    published_at: str = "",
    modified_at: datetime | None = None,
    url: str = "",
) -> str:
    """schema.org ``BlogPosting`` description of an article.

    ``url`` is the public address of the article, added when known.
    """
    modified = modified_at or datetime.now(tz=UTC)
    author: dict[str, str] = {"@type": "Person", "name": meta.author}
    if meta.author_link:
        author["url"] = meta.author_link
    data = {
        "@context": "https://schema.org",
        "@type": "BlogPosting",
        "headline": meta.title,
        "image": meta.main_image_url,
        "datePublished": published_at or meta.published_at or modified.isoformat(),
        "dateModified": modified.isoformat(),
        "author": author,
        "publisher": {
            "@type": "Organization",
            "name": publisher,
            "logo": {"@type": "ImageObject", "url": logo_url},
        },
        "description": meta.description,
    }
    if url:
        data["url"] = url
        data["mainEntityOfPage"] = {"@type": "WebPage", "@id": url}
    return json.dumps(data, indent=2, ensure_ascii=False)
