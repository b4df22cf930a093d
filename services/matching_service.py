"""
Game name matching against the user's mapping table.

Scores every mapping entry by substring containment between the normalized
game name and the normalized OCR text / file name:

    OCR tier:       20 + length of the contained string
    Filename tier:  10 + length of the contained string

Containment is checked in both directions because either side may carry
extra words (mapping "Book of Dead V94" vs OCR "Book of Dead", or mapping
"Starburst" vs OCR "Starburst XXXtreme"). The length term prefers the longer,
more specific overlap within a tier.

Selection keeps the first entry reaching the highest score: a later entry
only replaces it with a strictly greater score. Score 0 never matches.
"""

from typing import Iterable, Optional
import structlog

from models.mapping import MappingEntry
from utils.text_utils import filename_core, normalize_text, strip_extension

logger = structlog.get_logger(__name__)


OCR_SCORE_FLOOR = 20
FILENAME_SCORE_FLOOR = 10
UNUSED_NAMES_SHOWN = 3


def score_mapping(
    normalized_name: str,
    normalized_ocr: str,
    normalized_filename: str
) -> int:
    """
    Score one normalized mapping name against normalized OCR text and file name.

    Each of the four containment checks is applied independently and the
    maximum wins.

    Returns:
        Score, 0 when no containment relation holds
    """
    if not normalized_name:
        return 0

    score = 0

    if normalized_ocr:
        if normalized_ocr in normalized_name:
            score = max(score, OCR_SCORE_FLOOR + len(normalized_ocr))
        if normalized_name in normalized_ocr:
            score = max(score, OCR_SCORE_FLOOR + len(normalized_name))

    if normalized_filename:
        if normalized_filename in normalized_name:
            score = max(score, FILENAME_SCORE_FLOOR + len(normalized_filename))
        if normalized_name in normalized_filename:
            score = max(score, FILENAME_SCORE_FLOOR + len(normalized_name))

    return score


def find_best_match(
    ocr_text: Optional[str],
    original_filename: str,
    mappings: Iterable[MappingEntry]
) -> Optional[MappingEntry]:
    """
    Find the mapping entry that best matches an image.

    Args:
        ocr_text: Text extracted from the image (None if unavailable)
        original_filename: Uploaded file name, e.g. "540x540-book-of-dead.webp"
        mappings: Mapping entries in table order

    Returns:
        Best matching entry, or None if no entry scores above 0
    """
    normalized_ocr = normalize_text(ocr_text)
    normalized_filename = normalize_text(filename_core(original_filename))

    best_match: Optional[MappingEntry] = None
    highest_score = 0

    for mapping in mappings:
        score = score_mapping(
            normalize_text(mapping.game_name),
            normalized_ocr,
            normalized_filename
        )
        if score > highest_score:
            highest_score = score
            best_match = mapping

    logger.debug(
        "best_match_selected",
        filename=original_filename,
        matched=best_match.game_name if best_match else None,
        score=highest_score
    )

    return best_match


def find_unused_mappings(
    filenames: Iterable[str],
    mappings: Iterable[MappingEntry]
) -> list[str]:
    """
    List mapping names that no uploaded file name appears to reference.

    Advisory only: runs before OCR, looks at file names alone (extension
    stripped, dimension prefix kept) and has no effect on matching.

    Returns:
        Game names of mappings whose normalized name is not contained in
        any normalized file name
    """
    normalized_names = [normalize_text(strip_extension(name)) for name in filenames]

    unused = []
    for mapping in mappings:
        normalized_mapping = normalize_text(mapping.game_name)
        if not normalized_mapping:
            continue
        if not any(normalized_mapping in name for name in normalized_names):
            unused.append(mapping.game_name)

    return unused


def format_unused_mappings_message(unused: list[str]) -> Optional[str]:
    """Build the advisory note for unused mappings, or None if there are none."""
    if not unused:
        return None

    shown = '", "'.join(unused[:UNUSED_NAMES_SHOWN])
    more = len(unused) - UNUSED_NAMES_SHOWN
    more_text = f" (and {more} more)" if more > 0 else ""

    return (
        f'Note: No uploaded images seem to directly relate to mapping entries for: "{shown}"'
        f"{more_text}. These mappings might not be used if OCR also doesn't find a match."
    )
