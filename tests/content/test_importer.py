"""Tests for the HTML importer."""

from postdesk.content.exporter import render_sections
from postdesk.content.importer import import_html, load_structured
from postdesk.content.models import ContentElement, ContentSection, dump_structured


def _shape(sections):
    return [[(e.type, e.content) for e in s.elements] for s in sections]


class TestImportHtml:
    def test_elements_follow_document_order(self):
        sections = import_html("<p>Hello</p><h2>Title</h2>")
        assert _shape(sections) == [[("paragraph", "Hello"), ("h2", "Title")]]

    def test_one_section_per_section_block(self):
        sections = import_html("<section><h2>A</h2></section><section><p>B</p></section>")
        assert _shape(sections) == [[("h2", "A")], [("paragraph", "B")]]

    def test_mixed_tags_without_sections(self):
        sections = import_html("<h2>One</h2>\n<p>Two</p>\n<h3>Three</h3>\n<p>Four</p>")
        assert _shape(sections) == [
            [("h2", "One"), ("paragraph", "Two"), ("h3", "Three"), ("paragraph", "Four")]
        ]

    def test_tag_attributes_tolerated(self):
        sections = import_html('<section class="intro"><p class="lead">Hi</p></section>')
        assert _shape(sections) == [[("paragraph", "Hi")]]

    def test_inline_markup_kept(self):
        sections = import_html("<p>Some <em>emphasis</em></p>")
        assert sections[0].elements[0].content == "Some <em>emphasis</em>"

    def test_unrecognized_block_kept_verbatim(self):
        sections = import_html("Just some text")
        assert _shape(sections) == [[("paragraph", "Just some text")]]

    def test_empty_input_gives_one_empty_section(self):
        for html in ("", "   \n"):
            sections = import_html(html)
            assert len(sections) == 1
            assert sections[0].elements == []

    def test_fresh_ids(self):
        sections = import_html("<p>a</p><p>b</p>")
        ids = [e.id for e in sections[0].elements] + [sections[0].id]
        assert len(set(ids)) == 3


class TestRoundTrip:
    def test_export_then_import_preserves_text_elements(self):
        original = [
            ContentSection(
                id="s1",
                elements=[
                    ContentElement(id="a", type="h2", content="Heading"),
                    ContentElement(id="b", type="paragraph", content="First"),
                ],
            ),
            ContentSection(
                id="s2",
                elements=[
                    ContentElement(id="c", type="h3", content="Sub"),
                    ContentElement(id="d", type="paragraph", content="Second <b>bold</b>"),
                ],
            ),
        ]
        assert _shape(import_html(render_sections(original))) == _shape(original)


class TestLoadStructured:
    def test_json_loaded(self):
        sections = [ContentSection(id="s", elements=[ContentElement(id="e", type="h2")])]
        assert load_structured(dump_structured(sections)) == sections

    def test_html_falls_back_to_import(self):
        assert _shape(load_structured("<h2>X</h2>")) == [[("h2", "X")]]

    def test_bad_json_shape_imported_as_html(self):
        sections = load_structured('{"not": "sections"}')
        assert _shape(sections) == [[("paragraph", '{"not": "sections"}')]]

    def test_none_gives_one_empty_section(self):
        sections = load_structured(None)
        assert len(sections) == 1
        assert sections[0].elements == []
