"""
Identifier, path and text fingerprint utilities.
"""

import hashlib
import re
from typing import Any

from .errors import ValidationError

DECK_ID_PATTERN = re.compile(r"module-[0-9]{2}")
DECK_FILE_PATTERN = re.compile(r"(module-[0-9]{2})\.html")
SLIDE_NUMBER_PATTERN = re.compile(r"[0-9]+")


def fingerprint(text: str | None) -> str | None:
    """Return the SHA-256 hex digest of ``text``, or ``None`` for empty text."""
    if not text:
        return None
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def validate_deck_id(deck_id: Any) -> str:
    """Ensure ``deck_id`` looks like ``module-XX``."""
    if not isinstance(deck_id, str) or not DECK_ID_PATTERN.fullmatch(deck_id):
        raise ValidationError(f"Invalid module format {deck_id!r}. Expected: module-XX")
    return deck_id


def validate_slide_index(slide_index: Any) -> int:
    """Ensure ``slide_index`` is a 1-based positive integer.

    Numeric strings are accepted, matching how slide numbers arrive from query
    strings and form posts.
    """
    if isinstance(slide_index, bool):
        raise ValidationError(f"Invalid slide number {slide_index!r}")
    if isinstance(slide_index, str):
        if not SLIDE_NUMBER_PATTERN.fullmatch(slide_index.strip()):
            raise ValidationError(f"Invalid slide number {slide_index!r}")
        slide_index = int(slide_index.strip())
    if not isinstance(slide_index, int) or slide_index < 1:
        raise ValidationError(f"Invalid slide number {slide_index!r}")
    return slide_index


def slide_key(deck_id: str, slide_index: int, extension: str = "mp3") -> str:
    """Canonical manifest key, e.g. ``module-03/slide-05.mp3``."""
    return f"{deck_id}/slide-{slide_index:02d}.{extension}"


def slide_file_name(slide_index: int, extension: str = "mp3") -> str:
    return f"slide-{slide_index:02d}.{extension}"


def deck_id_from_file_name(name: str) -> str | None:
    """Return the deck id for a document file name such as ``module-04.html``."""
    match = DECK_FILE_PATTERN.fullmatch(name)
    return match.group(1) if match else None
