"""Slide document scanning and narration patching."""

from .patcher import (
    NARRATION_ATTRIBUTE,
    MarkerSpan,
    count_slides,
    escape_attribute,
    extract_narrations,
    find_slide_marker,
    iter_slide_markers,
    patch_narration,
)

__all__ = [
    "NARRATION_ATTRIBUTE",
    "MarkerSpan",
    "count_slides",
    "escape_attribute",
    "extract_narrations",
    "find_slide_marker",
    "iter_slide_markers",
    "patch_narration",
]
