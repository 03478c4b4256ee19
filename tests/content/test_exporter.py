"""Tests for HTML, markdown and JSON-LD rendering."""

import json
from datetime import UTC, datetime

import pytest
from postdesk.content.exporter import (
    DocumentMeta,
    category_colors,
    extract_article,
    extract_youtube_id,
    render_document,
    render_element,
    render_json_ld,
    render_markdown,
    render_sections,
    render_tags,
)
from postdesk.content.models import BlogPostFormValues, ContentElement, ContentSection


def _el(type_: str, content: str = "", **kwargs: object) -> ContentElement:
    return ContentElement(id="e", type=type_, content=content, **kwargs)  # type: ignore[arg-type]


class TestExtractYoutubeId:
    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ",
            "https://www.youtube.com/embed/dQw4w9WgXcQ",
            "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
        ],
    )
    def test_extracts_id(self, url):
        assert extract_youtube_id(url) == "dQw4w9WgXcQ"

    def test_non_youtube_url(self):
        assert extract_youtube_id("https://cdn.example.com/clip.mp4") is None

    def test_wrong_length_capture(self):
        assert extract_youtube_id("https://youtu.be/short") is None

    def test_empty(self):
        assert extract_youtube_id("") is None
        assert extract_youtube_id(None) is None


class TestRenderElement:
    def test_headings_and_paragraph(self):
        assert render_element(_el("h2", "A")) == "  <h2>A</h2>"
        assert render_element(_el("h3", "B")) == "  <h3>B</h3>"
        assert render_element(_el("paragraph", "C")) == "  <p>C</p>"

    def test_unknown_type_renders_as_paragraph(self):
        assert render_element(_el("quote", "Q")) == "  <p>Q</p>"

    def test_list(self):
        html = render_element(_el("list", list_items=["one", "two"]))
        assert html == "  <ul>\n    <li>one</li>\n    <li>two</li>\n  </ul>"

    def test_empty_list_renders_nothing(self):
        assert render_element(_el("list", list_items=[])) == ""
        assert render_element(_el("list")) == ""

    def test_image(self):
        html = render_element(_el("image", "Cap", url="https://x/a.png", alt="An image"))
        assert '<img src="https://x/a.png" alt="An image" />' in html
        assert "<figcaption>Cap</figcaption>" in html
        assert html.startswith("  <figure>")

    def test_image_attributes_escaped(self):
        html = render_element(_el("image", url='https://x/"a".png', alt="<b>"))
        assert 'src="https://x/&quot;a&quot;.png"' in html
        assert 'alt="&lt;b&gt;"' in html

    def test_youtube_video_uses_iframe(self):
        html = render_element(_el("video", "Talk", url="https://www.youtube.com/watch?v=dQw4w9WgXcQ"))
        assert 'src="https://www.youtube.com/embed/dQw4w9WgXcQ"' in html
        assert "<iframe" in html
        assert "<video" not in html
        assert 'class="video"' in html

    def test_other_video_uses_native_player(self):
        html = render_element(_el("video", "Clip", url="https://cdn.example.com/clip.mp4"))
        assert '<video controls src="https://cdn.example.com/clip.mp4"></video>' in html
        assert "<iframe" not in html


class TestRenderSections:
    def test_one_section_block_per_section(self):
        sections = [
            ContentSection(id="a", elements=[_el("h2", "A"), _el("paragraph", "B")]),
            ContentSection(id="b", elements=[]),
        ]
        html = render_sections(sections)
        assert html == "<section>\n  <h2>A</h2>\n\n  <p>B</p>\n</section>\n\n<section>\n\n</section>"

    def test_no_sections(self):
        assert render_sections([]) == ""


class TestRenderMarkdown:
    def test_renders_each_type(self):
        sections = [
            ContentSection(
                id="s",
                elements=[
                    _el("h2", "Title"),
                    _el("h3", "Sub"),
                    _el("paragraph", "Text"),
                    _el("list", list_items=["a", "b"]),
                    _el("image", "Cap", url="u.png", alt="alt"),
                    _el("video", "Clip", url="v.mp4"),
                ],
            )
        ]
        md = render_markdown(sections)
        assert "## Title\n\n" in md
        assert "### Sub\n\n" in md
        assert "Text\n\n" in md
        assert "- a\n- b\n\n" in md
        assert "![alt](u.png)\nCap" in md
        assert "[Video: Clip](v.mp4)" in md


class TestRenderTags:
    def test_comma_separated(self):
        html = render_tags("Python, Web Dev")
        assert '<a href="/tags/python" rel="tag">Python</a>' in html
        assert '<a href="/tags/web-dev" rel="tag">Web Dev</a>' in html
        assert html.startswith('<section class="tags">')

    def test_list_input(self):
        assert 'href="/tags/seo"' in render_tags(["SEO", ""])

    def test_empty(self):
        assert render_tags("") == ""
        assert render_tags(" , ") == ""
        assert render_tags([]) == ""


class TestCategoryColors:
    def test_known_categories(self):
        assert category_colors("Blog")[0] == "#00796B"
        assert category_colors("Latest news")[0] == "#D81B60"
        assert category_colors("Tutorial")[1] == "#000000"
        assert category_colors("Provenance")[0] == "#6A1B9A"

    def test_default(self):
        assert category_colors("misc") == ("#9C27B0", "#FFFFFF", "#7B1FA2")


class TestRenderDocument:
    def test_minimal_document(self):
        html = render_document([ContentSection(id="s", elements=[_el("paragraph", "Body")])])
        assert html.startswith("<!DOCTYPE html>")
        assert "<title>Blog article</title>" in html
        assert "<p>Body</p>" in html
        assert 'name="description"' not in html
        assert 'name="author"' not in html
        assert 'property="og:image"' not in html
        assert 'class="tags"' not in html
        assert 'class="article-meta"' not in html

    def test_full_metadata(self):
        form = BlogPostFormValues(
            title="My Post",
            excerpt="Short summary",
            author="Ada",
            author_link="https://ada.example",
            publish_date="2024-03-05",
            category="news",
            main_image_url="https://x/main.png",
            main_image_alt="Main",
            main_image_caption="Main caption",
            intro_text="Intro paragraph",
            tags="alpha, beta",
        )
        html = render_document([], DocumentMeta.from_form(form, lang="fr"))
        assert '<html lang="fr">' in html
        assert "<title>My Post</title>" in html
        assert '<meta name="description" content="Short summary">' in html
        assert '<meta name="author" content="Ada">' in html
        assert '<meta property="og:image" content="https://x/main.png">' in html
        assert '<a href="https://ada.example">Ada</a>' in html
        assert '<time datetime="2024-03-05">March 5, 2024</time>' in html
        assert "#D81B60" in html
        assert '<figure class="main-image">' in html
        assert "<figcaption>Main caption</figcaption>" in html
        assert '<div class="article-intro">Intro paragraph</div>' in html
        assert 'href="/tags/alpha"' in html

    def test_title_escaped(self):
        html = render_document([], DocumentMeta(title="A & B"))
        assert "<title>A &amp; B</title>" in html


class TestExtractArticle:
    def test_from_rendered_document(self):
        html = render_document([ContentSection(id="s", elements=[_el("paragraph", "Body")])])
        article = extract_article(html)
        assert article.startswith("<article>")
        assert article.endswith("</article>")
        assert "<p>Body</p>" in article
        assert "<head>" not in article

    def test_body_without_article(self):
        assert extract_article("<html><body> <p>x</p> </body></html>") == "<article><p>x</p></article>"

    def test_article_with_attributes_in_body(self):
        html = '<body><article class="post"><p>x</p></article></body>'
        assert extract_article(html) == '<article class="post"><p>x</p></article>'

    def test_nothing_to_extract(self):
        assert extract_article("") == ""
        assert extract_article("<p>loose</p>") == ""


class TestRenderJsonLd:
    def test_blog_posting(self):
        meta = DocumentMeta(
            title="T", description="D", author="Ada", author_link="https://ada.example",
            main_image_url="https://x/i.png",
        )
        modified = datetime(2024, 1, 2, tzinfo=UTC)
        data = json.loads(
            render_json_ld(
                meta,
                publisher="Example Press",
                logo_url="https://x/logo.png",
                published_at="2024-01-01",
                modified_at=modified,
            )
        )
        assert data["@type"] == "BlogPosting"
        assert data["headline"] == "T"
        assert data["datePublished"] == "2024-01-01"
        assert data["dateModified"] == modified.isoformat()
        assert data["author"] == {"@type": "Person", "name": "Ada", "url": "https://ada.example"}
        assert data["publisher"]["name"] == "Example Press"
        assert data["publisher"]["logo"]["url"] == "https://x/logo.png"

    def test_author_url_omitted_without_link(self):
        data = json.loads(render_json_ld(DocumentMeta(author="Ada"), publisher="P"))
        assert "url" not in data["author"]
