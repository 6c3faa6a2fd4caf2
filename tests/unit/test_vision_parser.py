import pytest

from shelfscan.pipeline.exceptions import ErrorCode, VisionError
from shelfscan.vision.parser import normalize_series_number, parse_books_response


class TestNormalizeSeriesNumber:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (3, 3),
            (2.0, 2),
            (1.5, 1.5),
            ("4", 4),
            (" 7 ", 7),
            ("Book 12", 12),
            ("חלק 3", 3),
            ("", None),
            (None, None),
            ("none", None),
            (True, None),
        ],
    )
    def test_coerces(self, value: object, expected: object) -> None:
        assert normalize_series_number(value) == expected


class TestParseBooksResponse:
    def test_plain_array(self) -> None:
        books = parse_books_response('[{"title": "Dune", "author": "Frank Herbert"}]')
        assert len(books) == 1
        assert books[0].title == "Dune"
        assert books[0].author == "Frank Herbert"

    def test_books_object(self) -> None:
        books = parse_books_response('{"books": [{"title": "Emma"}]}')
        assert [b.title for b in books] == ["Emma"]

    def test_strips_markdown_fences(self) -> None:
        raw = '```json\n[{"title": "Ulysses", "author": "Joyce"}]\n```'
        books = parse_books_response(raw)
        assert books[0].title == "Ulysses"

    def test_extracts_array_from_prose(self) -> None:
        raw = 'Here are the books I found: [{"title": "Beloved"}] Hope this helps.'
        books = parse_books_response(raw)
        assert books[0].title == "Beloved"

    def test_unparseable_raises_ai_failed(self) -> None:
        with pytest.raises(VisionError) as exc_info:
            parse_books_response("I could not see any books, sorry.")
        assert exc_info.value.code is ErrorCode.AI_FAILED

    def test_object_without_books_raises(self) -> None:
        with pytest.raises(VisionError):
            parse_books_response('{"result": "none"}')

    def test_empty_array_is_valid(self) -> None:
        assert parse_books_response("[]") == []

    def test_drops_short_and_missing_titles(self) -> None:
        raw = '[{"title": "A"}, {"title": "  "}, {"author": "x"}, "junk", {"title": "Ok"}]'
        books = parse_books_response(raw)
        assert [b.title for b in books] == ["Ok"]

    def test_every_title_has_two_chars_after_trim(self) -> None:
        raw = '[{"title": " B "}, {"title": " Bc "}, {"title": "הא"}]'
        books = parse_books_response(raw)
        assert all(len(b.title) >= 2 for b in books)
        assert [b.title for b in books] == ["Bc", "הא"]

    def test_accepts_field_aliases(self) -> None:
        raw = (
            '[{"title": "Book One", "series_title": "Saga", "seriesNumber": "2"},'
            ' {"title": "Book Two", "seriesIndex": "vol. 5"}]'
        )
        books = parse_books_response(raw)
        assert books[0].series == "Saga"
        assert books[0].series_number == 2
        assert books[1].series_number == 5

    def test_empty_optional_fields_become_none(self) -> None:
        books = parse_books_response(
            '[{"title": "Solo", "author": "", "series": "", "genre": "", "age_range": null}]'
        )
        assert books[0].author == ""
        assert books[0].series is None
        assert books[0].genre is None
        assert books[0].age_range is None
