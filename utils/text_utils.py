"""
Text utilities for comparing game names and building file names.

Used by the matcher (normalization) and by the renaming/archive steps
(sanitization).
"""

import re
from typing import Optional

from config import settings

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_DIMENSION_PREFIX = re.compile(r"^[0-9]+x[0-9]+-")
_IMAGE_SUFFIX = re.compile(r"\.(webp|png|jpe?g|gif)$", re.IGNORECASE)
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")
_WHITESPACE = re.compile(r"\s+")
_EDGE_SEPARATORS_END = re.compile(r"[_.-]+$")
_EDGE_SEPARATORS_START = re.compile(r"^[_.-]+")


def normalize_text(text: Optional[str]) -> str:
    """
    Reduce text to its lower-case ASCII alphanumeric run.

    - "King's Mystery!" → "kingsmystery"
    - "Book of Dead (V94)" → "bookofdeadv94"
    - "Café" → "caf"

    Args:
        text: OCR output, file name or mapping name (may be None)

    Returns:
        Canonical comparable string, empty for empty input
    """
    if not text:
        return ""
    return _NON_ALNUM.sub("", text.lower())


def strip_extension(filename: str) -> str:
    """Drop the last extension; names without one (or dot-files) are kept whole."""
    dot = filename.rfind(".")
    if dot <= 0:
        return filename
    return filename[:dot]


def filename_core(filename: str) -> str:
    """
    Extract the game-relevant part of an uploaded file name.

    Removes the extension and a leading "<w>x<h>-" dimension prefix:
    "540x540-book-of-dead.webp" → "book-of-dead"
    """
    return _DIMENSION_PREFIX.sub("", strip_extension(filename), count=1)


def sanitize_filename(
    name: str,
    fallback: str = "renamed_image",
    max_length: Optional[int] = None
) -> str:
    """
    Convert an arbitrary label into a safe file name stem.

    - Strips a trailing image suffix (.webp, .png, .jpg, .jpeg, .gif)
    - Replaces characters outside [A-Za-z0-9_.-] with "_"
    - Truncates to max_length
    - Trims leading/trailing "_", "." and "-"

    Args:
        name: Raw label (game code, provider, ...)
        fallback: Returned when nothing usable is left
        max_length: Maximum length, defaults to settings.max_filename_length

    Returns:
        Sanitized name, never empty
    """
    if max_length is None:
        max_length = settings.max_filename_length

    sane = _IMAGE_SUFFIX.sub("", name or "")
    sane = _UNSAFE_CHARS.sub("_", sane)
    sane = _WHITESPACE.sub("_", sane)

    if len(sane) > max_length:
        sane = sane[:max_length]

    sane = _EDGE_SEPARATORS_END.sub("", sane)
    sane = _EDGE_SEPARATORS_START.sub("", sane)

    return sane or fallback
