import pytest

from shelfscan.enrichment.matching import (
    author_similarity,
    find_best_match,
    match_score,
    normalize_string,
    similarity,
)
from shelfscan.enrichment.models import EnrichedRecord


class TestNormalizeString:
    def test_lowercases_and_collapses_whitespace(self) -> None:
        assert normalize_string("  The   Hobbit ") == "the hobbit"

    def test_strips_punctuation(self) -> None:
        assert normalize_string("Harry Potter: Book #1!") == "harry potter book 1"

    def test_strips_hebrew_vowel_points(self) -> None:
        assert normalize_string("שָׁלוֹם") == "שלום"

    def test_none(self) -> None:
        assert normalize_string(None) == ""


class TestSimilarity:
    @pytest.mark.parametrize(
        ("a", "b", "expected"),
        [("kitten", "sitting", 4 / 7), ("", "abc", 0.0), ("abc", "", 0.0), ("ab", "ba", 0.0)],
    )
    def test_edit_distance_over_longer_length(self, a: str, b: str, expected: float) -> None:
        assert similarity(a, b) == pytest.approx(expected)

    def test_identical_is_one(self) -> None:
        assert similarity("dune", "dune") == 1.0

    def test_empty_strings(self) -> None:
        assert similarity("", "") == 1.0


class TestAuthorSimilarity:
    def test_missing_author(self) -> None:
        assert author_similarity("", "Herbert") == 0.0

    def test_exact(self) -> None:
        assert author_similarity("Frank Herbert", "frank herbert") == 1.0

    def test_substring(self) -> None:
        assert author_similarity("Herbert", "Frank Herbert") == 0.85

    def test_same_surname_with_initial(self) -> None:
        assert author_similarity("F. Herbert", "Frank Herbert") == 0.9


class TestMatchScore:
    def test_exact_title_and_author(self) -> None:
        record = EnrichedRecord(title="Dune", author="Frank Herbert")
        assert match_score(record, "Dune", "Frank Herbert") == 90

    def test_bonuses(self) -> None:
        record = EnrichedRecord(
            title="Dune",
            author="Frank Herbert",
            isbn="9780441013593",
            cover_image_url="https://covers/dune.jpg",
            description="x" * 101,
        )
        assert match_score(record, "Dune", "Frank Herbert") == 110

    def test_title_substring(self) -> None:
        record = EnrichedRecord(title="Dune Messiah")
        assert match_score(record, "Dune") == 50

    def test_record_without_title_earns_no_title_points(self) -> None:
        record = EnrichedRecord(
            title="",
            author="Frank Herbert",
            isbn="123",
            cover_image_url="https://covers/dune.jpg",
        )
        assert match_score(record, "Dune", "Frank Herbert") == 45

    def test_empty_search_title_earns_no_title_points(self) -> None:
        assert match_score(EnrichedRecord(title="Dune"), "") == 0

    def test_unrelated(self) -> None:
        record = EnrichedRecord(title="Emma", author="Jane Austen")
        assert match_score(record, "Dune") == 0


class TestFindBestMatch:
    def test_empty(self) -> None:
        assert find_best_match([], "Dune") is None

    def test_picks_highest(self) -> None:
        weak = EnrichedRecord(title="Dune Messiah")
        strong = EnrichedRecord(title="Dune", author="Frank Herbert")
        record, score = find_best_match([weak, strong], "Dune", "Frank Herbert")  # type: ignore[misc]
        assert record is strong
        assert score == 90

    def test_ties_keep_first(self) -> None:
        first = EnrichedRecord(title="Dune")
        second = EnrichedRecord(title="Dune")
        record, _ = find_best_match([first, second], "Dune")  # type: ignore[misc]
        assert record is first

    def test_nothing_scores_returns_first_with_zero(self) -> None:
        only = EnrichedRecord(title="Emma")
        assert find_best_match([only], "Dune") == (only, 0)
