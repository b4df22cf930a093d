"""
Unit tests for the matching service.

Run: pytest tests/unit/test_matching_service.py -v
"""

from models.mapping import MappingEntry
from services.matching_service import (
    find_best_match,
    find_unused_mappings,
    format_unused_mappings_message,
    score_mapping,
)
from tests.factories import MappingEntryFactory


def entry(name: str, code: str = None) -> MappingEntry:
    return MappingEntry(game_name=name, code=code or name.lower().replace(" ", ""))


class TestScoreMapping:
    """Tests for score_mapping() - each containment check on its own"""

    def test_mapping_contains_ocr(self):
        # "gamev2" ⊇ "game" → 20 + 4
        assert score_mapping("gamev2", "game", "") == 24

    def test_ocr_contains_mapping(self):
        # "gamedeluxe" ⊇ "game" → 20 + 4
        assert score_mapping("game", "gamedeluxe", "") == 24

    def test_mapping_contains_filename(self):
        # "bookofdeadv94" ⊇ "bookofdead" → 10 + 10
        assert score_mapping("bookofdeadv94", "", "bookofdead") == 20

    def test_filename_contains_mapping(self):
        # "starburstofficialart" ⊇ "starburst" → 10 + 9
        assert score_mapping("starburst", "", "starburstofficialart") == 19

    def test_max_over_all_checks(self):
        # OCR: "game" ⊇ "game" both ways → 24; filename "gamedeluxeart" ⊇ "game" → 14
        assert score_mapping("game", "game", "gamedeluxeart") == 24

    def test_filename_can_outscore_short_ocr(self):
        # OCR "ab" in mapping → 22; filename ⊇ mapping → 10 + 16 = 26
        assert score_mapping("abcdefghijklmnop", "ab", "abcdefghijklmnopq") == 26

    def test_no_relation_scores_zero(self):
        assert score_mapping("starburst", "bookofdead", "bookofdead") == 0

    def test_empty_mapping_scores_zero(self):
        assert score_mapping("", "anything", "anything") == 0

    def test_empty_inputs_score_zero(self):
        assert score_mapping("starburst", "", "") == 0


class TestFindBestMatch:
    """Tests for find_best_match()"""

    def test_game_deluxe_scores_enumerated(self):
        """
        OCR "Game Deluxe" → "gamedeluxe"; filename "image.webp" → "image".

        Game:   "gamedeluxe" ⊇ "game"            → 20 + 4 = 24
        GameV2: "gamev2" ⊉ "gamedeluxe", "gamedeluxe" ⊉ "gamev2",
                no filename relation             → 0
        """
        game = entry("Game")
        game_v2 = entry("GameV2")

        assert score_mapping("game", "gamedeluxe", "image") == 24
        assert score_mapping("gamev2", "gamedeluxe", "image") == 0
        assert find_best_match("Game Deluxe", "image.webp", [game, game_v2]) is game
        assert find_best_match("Game Deluxe", "image.webp", [game_v2, game]) is game

    def test_equal_scores_first_seen_wins(self):
        """
        OCR "Game" → "game".

        Game:   "game" ⊇ "game"   → 24
        GameV2: "gamev2" ⊇ "game" → 24
        """
        game = entry("Game")
        game_v2 = entry("GameV2")

        assert find_best_match("Game", "image.webp", [game, game_v2]) is game
        assert find_best_match("Game", "image.webp", [game_v2, game]) is game_v2

    def test_later_higher_score_replaces(self):
        """
        OCR "Book of Dead Deluxe" → "bookofdeaddeluxe".

        Book:         → 20 + 4 = 24
        Book of Dead: → 20 + 10 = 30
        """
        book = entry("Book")
        book_of_dead = entry("Book of Dead")

        assert find_best_match("Book of Dead Deluxe", "x.webp", [book, book_of_dead]) is book_of_dead

    def test_ocr_tier_beats_filename_tier(self):
        """
        OCR "Starburst" → 20 + 9 = 29 for Starburst.
        Filename "book-of-dead" → 10 + 10 = 20 for Book of Dead.
        """
        starburst = entry("Starburst")
        book_of_dead = entry("Book of Dead")

        match = find_best_match("Starburst", "540x540-book-of-dead.webp", [book_of_dead, starburst])

        assert match is starburst

    def test_filename_only_match(self):
        book_of_dead = entry("Book of Dead")

        match = find_best_match(None, "540x540-book-of-dead.webp", [entry("Starburst"), book_of_dead])

        assert match is book_of_dead

    def test_dimension_prefix_ignored(self):
        """'540x540' would otherwise be part of the normalized filename."""
        short = entry("540")

        assert find_best_match(None, "540x540-zzz.webp", [short]) is None

    def test_no_relation_returns_none(self, sample_mappings):
        assert find_best_match("Gonzo's Quest", "gonzo.webp", sample_mappings) is None

    def test_empty_mappings_returns_none(self):
        assert find_best_match("Starburst", "starburst.webp", []) is None

    def test_punctuation_only_mapping_skipped(self):
        assert find_best_match("Starburst", "starburst.webp", [entry("!!!", "x")]) is None

    def test_noisy_ocr_text(self, sample_mappings):
        match = find_best_match("AGE OF THE\nGODS™\nPlay now!", "banner.webp", sample_mappings)

        assert match.code == "aogs"


class TestUnusedMappings:
    """Tests for the pre-OCR unused mapping advisory"""

    def test_lists_mappings_not_in_any_filename(self, sample_mappings):
        unused = find_unused_mappings(["540x540-book-of-dead.webp"], sample_mappings)

        assert unused == ["Starburst", "Age of the Gods"]

    def test_all_used(self, sample_mappings):
        names = ["book_of_dead.webp", "STARBURST.png", "age-of-the-gods-v2.webp"]

        assert find_unused_mappings(names, sample_mappings) == []

    def test_filename_containing_mapping_only(self):
        """The advisory checks one direction only: mapping inside filename."""
        unused = find_unused_mappings(["book.webp"], [entry("Book of Dead")])

        assert unused == ["Book of Dead"]

    def test_message_lists_three_and_more(self):
        mappings = MappingEntryFactory.create_batch(5)
        unused = [m.game_name for m in mappings]

        message = format_unused_mappings_message(unused)

        assert message.startswith("Note: No uploaded images seem to directly relate")
        assert f'"{unused[0]}", "{unused[1]}", "{unused[2]}"' in message
        assert "(and 2 more)" in message

    def test_message_none_when_nothing_unused(self):
        assert format_unused_mappings_message([]) is None
