"""SEO completeness scoring for the article form.

The score is a presentational aid only; nothing gates on it.
"""

from __future__ import annotations

import re

from postdesk.content.models import BlogPostFormValues
from pydantic import BaseModel, Field

MIN_CONTENT_LENGTH = 300
EXCERPT_MAX_LENGTH = 160

MANDATORY_WEIGHT = 1.0
OPTIONAL_WEIGHT = 0.5
STRUCTURE_WEIGHT = 0.25

# 4 mandatory + 4 optional + 4 structure signals
MAX_SCORE = 4 * MANDATORY_WEIGHT + 4 * OPTIONAL_WEIGHT + 4 * STRUCTURE_WEIGHT

_H2_RE = re.compile(r"<h2[\s>]", re.IGNORECASE)
_H3_RE = re.compile(r"<h3[\s>]", re.IGNORECASE)
_P_RE = re.compile(r"<p[\s>]", re.IGNORECASE)
_LIST_RE = re.compile(r"<[uo]l[\s>]", re.IGNORECASE)


def generate_slug(title: str) -> str:
    """Lower-case, drop punctuation, join words with hyphens."""
    slug = re.sub(r"[^\w\s]", "", title.lower())
    return re.sub(r"\s+", "-", slug)


class SeoCheck(BaseModel):
    """One scored signal."""

    name: str
    passed: bool
    weight: float


class SeoReport(BaseModel):
    """Score, the individual signals, and what to fix."""

    score: int
    checks: list[SeoCheck] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


def _structure(content: str) -> dict[str, bool]:
    return {
        "h2": bool(_H2_RE.search(content)),
        "h3": bool(_H3_RE.search(content)),
        "paragraphs": bool(_P_RE.search(content)),
        "list": bool(_LIST_RE.search(content)),
    }


def _checks(form: BlogPostFormValues, min_content_length: int) -> list[SeoCheck]:
    has_image = bool(form.main_image_url)
    structure = _structure(form.content)
    return [
        SeoCheck(name="title", passed=bool(form.title), weight=MANDATORY_WEIGHT),
        SeoCheck(name="excerpt", passed=bool(form.excerpt), weight=MANDATORY_WEIGHT),
        SeoCheck(
            name="content_length",
            passed=len(form.content) > min_content_length,
            weight=MANDATORY_WEIGHT,
        ),
        SeoCheck(name="slug", passed=bool(form.slug), weight=MANDATORY_WEIGHT),
        SeoCheck(name="author", passed=bool(form.author), weight=OPTIONAL_WEIGHT),
        SeoCheck(name="intro_text", passed=bool(form.intro_text), weight=OPTIONAL_WEIGHT),
        SeoCheck(name="main_image", passed=has_image, weight=OPTIONAL_WEIGHT),
        SeoCheck(
            name="main_image_alt",
            passed=has_image and bool(form.main_image_alt),
            weight=OPTIONAL_WEIGHT,
        ),
    ] + [
        SeoCheck(name=name, passed=passed, weight=STRUCTURE_WEIGHT)
        for name, passed in structure.items()
    ]


def score_form(form: BlogPostFormValues, *, min_content_length: int = MIN_CONTENT_LENGTH) -> int:
    """Return the 0-100 completeness score of the form."""
    achieved = sum(c.weight for c in _checks(form, min_content_length) if c.passed)
    return max(0, min(100, round(100 * achieved / MAX_SCORE)))


def recommendations(
    form: BlogPostFormValues,
    *,
    min_content_length: int = MIN_CONTENT_LENGTH,
    excerpt_max_length: int = EXCERPT_MAX_LENGTH,
) -> list[str]:
    """Human-readable suggestions for the missing signals."""
    tips: list[str] = []
    length = len(form.content)

    if not form.title:
        tips.append("Add a title to your article")
    if not form.excerpt:
        tips.append("Add an excerpt to improve search results")
    elif len(form.excerpt) > excerpt_max_length:
        tips.append(f"Keep your excerpt under {excerpt_max_length} characters")
    if length < min_content_length:
        tips.append(f"Your content should be at least {min_content_length} characters")
    if not form.slug:
        tips.append("Create a slug for your URL")

    if not form.author:
        tips.append("Add the author name to improve credibility")
    if not form.intro_text:
        tips.append("Add an introduction paragraph to capture attention")
    if not form.main_image_url:
        tips.append("Add a main image for better engagement")
    elif not form.main_image_alt:
        tips.append("Add alt text to your image for accessibility and SEO")

    structure = _structure(form.content)
    if not structure["h2"] and length > min_content_length:
        tips.append("Add H2 headings for better content structure and readability")
    if not structure["h3"] and length > 2 * min_content_length:
        tips.append("Consider adding H3 subheadings for detailed sections")
    if not structure["paragraphs"] and length > 0:
        tips.append("Structure your content with paragraphs")
    if not structure["list"] and length > 500:
        tips.append("Consider using lists for better readability")
    return tips


def analyze_form(
    form: BlogPostFormValues,
    *,
    min_content_length: int = MIN_CONTENT_LENGTH,
    excerpt_max_length: int = EXCERPT_MAX_LENGTH,
) -> SeoReport:
    return SeoReport(
        score=score_form(form, min_content_length=min_content_length),
        checks=_checks(form, min_content_length),
        recommendations=recommendations(
            form,
            min_content_length=min_content_length,
            excerpt_max_length=excerpt_max_length,
        ),
    )
