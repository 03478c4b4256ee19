"""In-memory editing state for an article body.

``ContentEditorState`` owns the section tree for one editing session.
Every operation runs to completion synchronously, leaves the tree valid,
and then notifies the ``on_change`` callback so a view can re-render.

Per-field values typed by the user live in the presentation layer until
``collect_and_serialize`` writes them back; that call is the single
synchronization point between the two.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from postdesk.content.exporter import render_markdown, render_sections
from postdesk.content.importer import import_html
from postdesk.content.models import (
    ContentElement,
    ContentSection,
    ElementType,
    StructuredContent,
    dump_structured,
    new_element,
    new_section,
    parse_structured,
)
from postdesk.errors import ContentDecodeError
from pydantic import BaseModel

logger = logging.getLogger(__name__)

_ELEMENT_FIELDS = ("content", "url", "alt")


def field_key(element_id: str, field: str, index: int | None = None) -> str:
    """Key of one editable field in the values passed to ``collect_and_serialize``.

    ``field`` is ``content``, ``url``, ``alt`` or ``item`` (list items,
    which take an ``index``).
    """
    if index is not None:
        return f"{element_id}:{field}:{index}"
    return f"{element_id}:{field}"


class SerializedContent(BaseModel):
    """Result of a save: the persisted JSON plus derived renderings."""

    json_content: str
    html: str
    markdown: str
    sections: StructuredContent


def _swap(items: list[Any], i: int, j: int) -> None:
    items[i], items[j] = items[j], items[i]


class ContentEditorState:
    """Mutable section tree for one editing session."""

    def __init__(
        self,
        sections: StructuredContent | None = None,
        *,
        on_change: Callable[[ContentEditorState], None] | None = None,
    ) -> None:
        self.sections: StructuredContent = list(sections) if sections is not None else []
        self._on_change = on_change

    @classmethod
    def from_initial(
        cls,
        value: str | list[Any] | None,
        *,
        on_change: Callable[[ContentEditorState], None] | None = None,
    ) -> ContentEditorState:
        """Build the starting tree from whatever the form was loaded with.

        Accepts a list of sections (models or plain dicts), JSON text, or
        raw HTML.  Empty input, or a list that is not a valid section list,
        starts from one empty section.  Any other text, JSON-looking or
        not, goes through the HTML importer so none of it is lost.
        """
        if not value:
            return cls([new_section()], on_change=on_change)
        try:
            return cls(parse_structured(value), on_change=on_change)
        except ContentDecodeError as exc:
            logger.debug("Initial content is not structured: %s", exc)
        if isinstance(value, list):
            return cls([new_section()], on_change=on_change)
        return cls(import_html(value), on_change=on_change)

    # ── Lookup ───────────────────────────────────────────────────

    def _section(self, section_id: str) -> ContentSection | None:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def _element(self, section_id: str, element_id: str) -> ContentElement | None:
        section = self._section(section_id)
        if section is None:
            return None
        for element in section.elements:
            if element.id == element_id:
                return element
        return None

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    # ── Sections ─────────────────────────────────────────────────

    def add_section(self) -> ContentSection:
        section = new_section()
        self.sections.append(section)
        self._changed()
        return section

    def remove_section(self, section_id: str) -> None:
        """Remove a section; the last one may be removed too."""
        remaining = [s for s in self.sections if s.id != section_id]
        if len(remaining) != len(self.sections):
            self.sections = remaining
            self._changed()

    def move_section_up(self, index: int) -> None:
        if 0 < index < len(self.sections):
            _swap(self.sections, index, index - 1)
            self._changed()

    def move_section_down(self, index: int) -> None:
        if 0 <= index < len(self.sections) - 1:
            _swap(self.sections, index, index + 1)
            self._changed()

    # ── Elements ─────────────────────────────────────────────────

    def add_element(
        self, section_id: str, element_type: ElementType | str
    ) -> ContentElement | None:
        section = self._section(section_id)
        if section is None:
            return None
        element = new_element(element_type)
        section.elements.append(element)
        self._changed()
        return element

    def remove_element(self, section_id: str, element_id: str) -> None:
        section = self._section(section_id)
        if section is None:
            return
        remaining = [e for e in section.elements if e.id != element_id]
        if len(remaining) != len(section.elements):
            section.elements = remaining
            self._changed()

    def update_element(self, section_id: str, element_id: str, **fields: str) -> None:
        """Set ``content``, ``url`` or ``alt`` on an element."""
        unknown = set(fields) - set(_ELEMENT_FIELDS)
        if unknown:
            raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")
        element = self._element(section_id, element_id)
        if element is None:
            return
        for name, value in fields.items():
            setattr(element, name, value)
        self._changed()

    def move_element_up(self, section_id: str, index: int) -> None:
        section = self._section(section_id)
        if section is not None and 0 < index < len(section.elements):
            _swap(section.elements, index, index - 1)
            self._changed()

    def move_element_down(self, section_id: str, index: int) -> None:
        section = self._section(section_id)
        if section is not None and 0 <= index < len(section.elements) - 1:
            _swap(section.elements, index, index + 1)
            self._changed()

    # ── List items ───────────────────────────────────────────────

    def add_list_item(self, section_id: str, element_id: str) -> None:
        element = self._element(section_id, element_id)
        if element is None or element.list_items is None:
            return
        element.list_items.append("")
        self._changed()

    def remove_list_item(self, section_id: str, element_id: str, index: int) -> None:
        """Remove one bullet; a list always keeps at least one."""
        element = self._element(section_id, element_id)
        if element is None or element.list_items is None or len(element.list_items) <= 1:
            return
        if not 0 <= index < len(element.list_items):
            return
        del element.list_items[index]
        self._changed()

    def update_list_item(self, section_id: str, element_id: str, index: int, value: str) -> None:
        element = self._element(section_id, element_id)
        if element is None or element.list_items is None:
            return
        if 0 <= index < len(element.list_items):
            element.list_items[index] = value
            self._changed()

    # ── Save ─────────────────────────────────────────────────────

    def _apply_field_values(self, values: Mapping[str, str]) -> None:
        for section in self.sections:
            for element in section.elements:
                for name in _ELEMENT_FIELDS:
                    key = field_key(element.id, name)
                    if key in values:
                        setattr(element, name, values[key])
                if element.list_items is not None:
                    element.list_items = [
                        values.get(field_key(element.id, "item", i), item)
                        for i, item in enumerate(element.list_items)
                    ]

    def collect_and_serialize(
        self, field_values: Mapping[str, str] | None = None
    ) -> SerializedContent:
        """Write pending field values into the tree and serialize it.

        An empty tree gains one empty section so the JSON is never ``[]``.
        """
        if field_values:
            self._apply_field_values(field_values)
        if not self.sections:
            self.sections.append(new_section())

        json_content = dump_structured(self.sections)
        logger.debug(
            "Serialized %d section(s) to %d bytes of JSON", len(self.sections), len(json_content)
        )
        self._changed()
        return SerializedContent(
            json_content=json_content,
            html=render_sections(self.sections),
            markdown=render_markdown(self.sections),
            sections=[s.model_copy(deep=True) for s in self.sections],
        )

    def to_data(self) -> list[dict[str, Any]]:
        return json.loads(dump_structured(self.sections))
