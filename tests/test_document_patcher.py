"""Tests for slide marker scanning and narration patching."""

import html

import pytest

from narration_studio.services.documents import (
    count_slides,
    escape_attribute,
    extract_narrations,
    find_slide_marker,
    iter_slide_markers,
    patch_narration,
)


def _other_attributes(marker) -> list[tuple[str, str]]:
    return [(attr.name, attr.value) for attr in marker.attributes if attr.name != "data-narration"]


def test_counts_only_sections_with_slide_class(sample_deck: str) -> None:
    assert count_slides(sample_deck) == 5
    ids = [marker.attribute("id").value for marker in iter_slide_markers(sample_deck)]
    assert ids == ["slide-1", "slide-2", "slide-3", "slide-4", "slide-5"]


def test_class_token_must_match_exactly() -> None:
    document = (
        '<section class="title-slide">a</section>'
        '<section class="slideshow">b</section>'
        '<section class="intro slide">c</section>'
    )
    markers = list(iter_slide_markers(document))
    assert len(markers) == 1
    assert markers[0].classes == ["intro", "slide"]


def test_quoted_greater_than_does_not_end_the_tag() -> None:
    document = '<section class="slide" title="a > b" data-narration="x">body</section>'
    marker = find_slide_marker(document, 1)
    assert marker is not None
    assert document[marker.start:marker.end] == '<section class="slide" title="a > b" data-narration="x">'


def test_extract_narrations_unescapes_values(sample_deck: str) -> None:
    narrations = [item.narration for item in extract_narrations(sample_deck)]
    assert narrations == [
        "Welcome to module three.",
        "",
        'Single "quoted" narration',
        "Tom & Jerry <3",
        "",
    ]


def test_escape_attribute_escapes_ampersand_first() -> None:
    assert escape_attribute('a & "b" <c> &lt;') == "a &amp; &quot;b&quot; &lt;c&gt; &amp;lt;"


def test_patch_inserts_missing_attribute_before_closing_delimiter(sample_deck: str) -> None:
    result = patch_narration(sample_deck, 5, "Hello <world> & friends")

    assert result.found is True
    assert result.previous_narration is None
    assert '<section class="slide" id="slide-5" data-narration="Hello &lt;world&gt; &amp; friends">' in result.document


def test_patch_replaces_existing_value_in_place(sample_deck: str) -> None:
    result = patch_narration(sample_deck, 1, "New intro")

    assert result.previous_narration == "Welcome to module three."
    assert '<section class="slide title-slide" id="slide-1" data-narration="New intro">' in result.document


def test_patch_rewrites_single_quoted_value_with_double_quotes(sample_deck: str) -> None:
    result = patch_narration(sample_deck, 3, "It's fine")

    assert result.previous_narration == 'Single "quoted" narration'
    assert (
        '<section id="slide-3" class="slide two-column" data-narration="It\'s fine" aria-label="Third">'
        in result.document
    )


def test_patch_valueless_attribute() -> None:
    document = '<section class="slide" data-narration>x</section>'
    result = patch_narration(document, 1, "Now set")
    assert result.document == '<section class="slide" data-narration="Now set">x</section>'


def test_patch_self_closing_marker() -> None:
    document = '<section class="slide"/>'
    result = patch_narration(document, 1, "text")
    assert result.document == '<section class="slide" data-narration="text"/>'


def test_patch_out_of_range_returns_document_unchanged(sample_deck: str) -> None:
    result = patch_narration(sample_deck, 6, "Nope")

    assert result.found is False
    assert result.document == sample_deck
    assert result.slide_count == 5


@pytest.mark.parametrize("slide_index", [1, 2, 3, 4, 5])
def test_patch_only_changes_the_targeted_marker(sample_deck: str, slide_index: int) -> None:
    original_marker = find_slide_marker(sample_deck, slide_index)
    result = patch_narration(sample_deck, slide_index, "Replacement & <narration>")
    patched = result.document

    suffix_length = len(sample_deck) - original_marker.end
    assert patched[:original_marker.start] == sample_deck[:original_marker.start]
    assert patched[len(patched) - suffix_length:] == sample_deck[original_marker.end:]

    new_marker = find_slide_marker(patched, slide_index)
    assert _other_attributes(new_marker) == _other_attributes(original_marker)
    assert new_marker.attribute("data-narration").value == "Replacement & <narration>"

    before = extract_narrations(sample_deck)
    after = extract_narrations(patched)
    for old, new in zip(before, after):
        if old.slide_index != slide_index:
            assert new.narration == old.narration


@pytest.mark.parametrize("slide_index", [1, 2, 3, 4, 5])
def test_patch_is_idempotent(sample_deck: str, slide_index: int) -> None:
    once = patch_narration(sample_deck, slide_index, 'Say "hi" & <wave>').document
    twice = patch_narration(once, slide_index, 'Say "hi" & <wave>').document
    assert twice == once


@pytest.mark.parametrize(
    "text",
    [
        "Hello <world> & friends",
        'She said "stop" > then & left',
        "&amp; is already an entity",
        "<script>alert('x')</script>",
        "Unicode ✓ ünïcödé",
    ],
)
def test_escaped_value_round_trips(sample_deck: str, text: str) -> None:
    result = patch_narration(sample_deck, 2, text)
    marker = find_slide_marker(result.document, 2)
    raw_value = marker.attribute("data-narration").raw_value

    assert "<" not in raw_value and ">" not in raw_value and '"' not in raw_value
    assert html.unescape(raw_value) == text
    assert extract_narrations(result.document)[1].narration == text


def test_unterminated_tag_stops_scanning() -> None:
    document = '<section class="slide">one</section><section class="slide" data-narration="open'
    assert count_slides(document) == 1
    assert patch_narration(document, 2, "x").found is False
