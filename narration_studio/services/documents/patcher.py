"""Slide document scanning and narration patching.

A deck document is HTML in which every slide is a ``<section>`` element whose
``class`` attribute contains the ``slide`` token. Slides are addressed by the
position of their opening tag in document order (1-based); the narration lives in
the ``data-narration`` attribute of that tag.

The scanner works on *marker spans*: the start and end offsets of each slide's
opening tag plus the offsets of every attribute inside it. Patching rewrites bytes
inside a single span only, so everything outside the targeted tag is copied
through unchanged.
"""

from __future__ import annotations

import html
import re
from collections.abc import Iterator
from dataclasses import dataclass

from narration_studio.shared.models import PatchResult, SlideNarration

NARRATION_ATTRIBUTE = "data-narration"
SLIDE_CLASS = "slide"

_SECTION_OPEN = re.compile(r"<section(?=[\s/>])", re.IGNORECASE)
_NAME_TERMINATORS = frozenset(" \t\r\n\f=>/")
_WHITESPACE = frozenset(" \t\r\n\f")


@dataclass(frozen=True)
class AttributeSpan:
    """Location of one attribute inside an opening tag."""

    name: str
    start: int
    end: int
    value_start: int | None = None
    value_end: int | None = None
    raw_value: str | None = None

    @property
    def value(self) -> str:
        """Attribute value with character references resolved."""
        return html.unescape(self.raw_value) if self.raw_value is not None else ""


@dataclass(frozen=True)
class MarkerSpan:
    """Location of a ``<section ...>`` opening tag."""

    start: int
    end: int
    close_offset: int
    attributes: tuple[AttributeSpan, ...]

    def attribute(self, name: str) -> AttributeSpan | None:
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        return None

    @property
    def classes(self) -> list[str]:
        attribute = self.attribute("class")
        return attribute.value.split() if attribute else []

    @property
    def is_slide(self) -> bool:
        return SLIDE_CLASS in self.classes


def escape_attribute(text: str) -> str:
    """Escape text for use inside a double-quoted HTML attribute."""
    return (
        text.replace("&", "&amp;")
        .replace('"', "&quot;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )


def _skip_whitespace(document: str, position: int) -> int:
    length = len(document)
    while position < length and document[position] in _WHITESPACE:
        position += 1
    return position


def scan_tag(document: str, start: int, name_end: int) -> MarkerSpan | None:
    """Parse the opening tag beginning at ``start``.

    ``name_end`` is the offset just after the tag name. Returns ``None`` when the
    tag is not terminated (an unclosed quote or end of document).
    """
    length = len(document)
    position = name_end
    attributes: list[AttributeSpan] = []

    while True:
        position = _skip_whitespace(document, position)
        if position >= length:
            return None

        char = document[position]
        if char == ">":
            return MarkerSpan(start, position + 1, position, tuple(attributes))
        if char == "/":
            if position + 1 < length and document[position + 1] == ">":
                return MarkerSpan(start, position + 2, position, tuple(attributes))
            position += 1
            continue

        name_start = position
        while position < length and document[position] not in _NAME_TERMINATORS:
            position += 1
        name = document[name_start:position].lower()
        name_end_offset = position

        lookahead = _skip_whitespace(document, position)
        if lookahead >= length or document[lookahead] != "=":
            attributes.append(AttributeSpan(name, name_start, name_end_offset))
            continue

        value_start = _skip_whitespace(document, lookahead + 1)
        if value_start >= length:
            return None

        quote = document[value_start]
        if quote in {'"', "'"}:
            closing = document.find(quote, value_start + 1)
            if closing == -1:
                return None
            value_end = closing + 1
            raw_value = document[value_start + 1:closing]
        else:
            value_end = value_start
            while value_end < length and document[value_end] not in _WHITESPACE and document[value_end] != ">":
                value_end += 1
            raw_value = document[value_start:value_end]

        attributes.append(
            AttributeSpan(name, name_start, value_end, value_start, value_end, raw_value)
        )
        position = value_end


def iter_section_markers(document: str) -> Iterator[MarkerSpan]:
    """Yield every well-formed ``<section>`` opening tag in document order."""
    position = 0
    while True:
        match = _SECTION_OPEN.search(document, position)
        if match is None:
            return
        marker = scan_tag(document, match.start(), match.end())
        if marker is None:
            return
        yield marker
        position = marker.end


def iter_slide_markers(document: str) -> Iterator[MarkerSpan]:
    """Yield the opening tag of every slide in document order."""
    for marker in iter_section_markers(document):
        if marker.is_slide:
            yield marker


def find_slide_marker(document: str, slide_index: int) -> MarkerSpan | None:
    for index, marker in enumerate(iter_slide_markers(document), start=1):
        if index == slide_index:
            return marker
    return None


def count_slides(document: str) -> int:
    return sum(1 for _ in iter_slide_markers(document))


def patch_narration(document: str, slide_index: int, new_text: str) -> PatchResult:
    """Rewrite the narration of the ``slide_index``-th slide (1-based).

    A missing attribute is appended just before the tag's closing delimiter; an
    existing one has only its value replaced. When the slide does not exist the
    document is returned unchanged with ``found=False``.
    """
    escaped = escape_attribute(new_text)
    count = 0
    for marker in iter_slide_markers(document):
        count += 1
        if count != slide_index:
            continue

        attribute = marker.attribute(NARRATION_ATTRIBUTE)
        if attribute is None:
            insert_at = marker.close_offset
            patched = f'{document[:insert_at]} {NARRATION_ATTRIBUTE}="{escaped}"{document[insert_at:]}'
            previous = None
        elif attribute.value_start is None:
            patched = f'{document[:attribute.end]}="{escaped}"{document[attribute.end:]}'
            previous = ""
        else:
            patched = f'{document[:attribute.value_start]}"{escaped}"{document[attribute.value_end:]}'
            previous = attribute.value

        return PatchResult(document=patched, found=True, previous_narration=previous, slide_count=count)

    return PatchResult(document=document, found=False, slide_count=count)


def extract_narrations(document: str) -> list[SlideNarration]:
    """Return the narration of every slide, empty when the attribute is absent."""
    narrations = []
    for index, marker in enumerate(iter_slide_markers(document), start=1):
        attribute = marker.attribute(NARRATION_ATTRIBUTE)
        narrations.append(SlideNarration(slide_index=index, narration=attribute.value if attribute else ""))
    return narrations
