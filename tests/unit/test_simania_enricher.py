from typing import Any

import httpx
import pytest

from shelfscan.config.settings import Settings
from shelfscan.enrichment.base import NullEnricher
from shelfscan.enrichment.factory import EnricherFactory
from shelfscan.enrichment.simania_enricher import SimaniaEnricher, normalize_cover_url
from shelfscan.pipeline.deadline import Deadline

BASE_URL = "https://simania.example"


def _search_body(*books: dict[str, Any]) -> dict[str, Any]:
    return {"success": True, "data": {"books": list(books)}}


def _enricher(handler, **kwargs: Any) -> SimaniaEnricher:
    return SimaniaEnricher(
        base_url=BASE_URL + "/",
        timeout_seconds=10,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


DUNE = {
    "NAME": "Dune",
    "AUTHOR": "Frank Herbert",
    "PUBLISHER": "Ace",
    "YEAR": 1965,
    "ISBN": "9780441013593",
    "imageLink": "/loadJpg.php?imageName=dune.jpg&size=big",
    "SERIES": "Dune",
    "seriesNumber": "1",
}


class TestNormalizeCoverUrl:
    def test_cover_field_wins(self) -> None:
        book = {"COVER": "https://cdn/x.jpg", "imageLink": "/other.jpg"}
        assert normalize_cover_url(book, BASE_URL) == "https://cdn/x.jpg"

    def test_load_jpg_link(self) -> None:
        book = {"imageLink": "/loadJpg.php?imageName=123.jpg&w=200"}
        assert normalize_cover_url(book, BASE_URL) == f"{BASE_URL}/bookimages/123.jpg"

    def test_relative_link(self) -> None:
        assert normalize_cover_url({"imageLink": "/covers/a.jpg"}, BASE_URL) == (
            f"{BASE_URL}/covers/a.jpg"
        )

    def test_no_cover(self) -> None:
        assert normalize_cover_url({}, BASE_URL) is None


class TestSimaniaEnricher:
    def test_enrich_maps_best_match(self) -> None:
        queries = []

        def handler(request: httpx.Request) -> httpx.Response:
            queries.append(request.url.params["query"])
            assert request.url.path == "/api/search"
            return httpx.Response(200, json=_search_body({"NAME": "Dune Messiah"}, DUNE))

        record = _enricher(handler).enrich("Dune", "Frank Herbert")

        assert queries == ["Dune Frank Herbert"]
        assert record is not None
        assert record.title == "Dune"
        assert record.publisher == "Ace"
        assert record.series_number == 1
        assert record.cover_image_url == f"{BASE_URL}/bookimages/dune.jpg"
        assert record.source == "Simania"
        assert record.language == "he"
        # 60 title + 30 author + 10 isbn + 5 cover, capped
        assert record.confidence == 100

    def test_retries_with_title_only(self) -> None:
        queries = []

        def handler(request: httpx.Request) -> httpx.Response:
            query = request.url.params["query"]
            queries.append(query)
            if query == "Dune":
                return httpx.Response(200, json=_search_body({"NAME": "Dune"}))
            return httpx.Response(200, json=_search_body())

        record = _enricher(handler).enrich("Dune", "F. Herbert")

        assert queries == ["Dune F. Herbert", "Dune"]
        assert record is not None
        assert record.confidence == 60

    def test_result_without_name_scores_below_high(self) -> None:
        nameless = {"AUTHOR": "Frank Herbert", "ISBN": "123", "COVER": "https://cdn/d.jpg"}
        handler = lambda r: httpx.Response(200, json=_search_body(nameless))  # noqa: E731

        record = _enricher(handler).enrich("Dune", "Frank Herbert")

        assert record is not None
        assert record.title == ""
        assert record.confidence == 45

    def test_no_results_returns_none(self) -> None:
        record = _enricher(lambda r: httpx.Response(200, json=_search_body())).enrich("Dune")
        assert record is None

    def test_http_error_returns_none(self) -> None:
        assert _enricher(lambda r: httpx.Response(503)).enrich("Dune") is None

    def test_unsuccessful_body(self) -> None:
        body = {"success": False, "error": "quota"}
        assert _enricher(lambda r: httpx.Response(200, json=body)).search("Dune") == []

    def test_non_object_body(self) -> None:
        assert _enricher(lambda r: httpx.Response(200, json=[1, 2])).search("Dune") == []

    def test_invalid_json(self) -> None:
        assert _enricher(lambda r: httpx.Response(200, text="<html>")).search("Dune") == []

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        assert _enricher(handler).search("Dune") == []

    def test_truncates_to_max_results(self) -> None:
        books = [{"NAME": f"Book {i}"} for i in range(10)]
        enricher = _enricher(lambda r: httpx.Response(200, json=_search_body(*books)), max_results=3)
        assert len(enricher.search("Book")) == 3

    def test_expired_deadline_skips_request(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("request should not be sent")

        assert _enricher(handler).search("Dune", Deadline(0)) == []


class TestEnricherFactory:
    def test_simania(self) -> None:
        enricher = EnricherFactory.create(Settings(enrichment_provider="simania"))
        assert isinstance(enricher, SimaniaEnricher)

    def test_none(self) -> None:
        enricher = EnricherFactory.create(Settings(enrichment_provider="none"))
        assert isinstance(enricher, NullEnricher)
        assert enricher.enrich("Dune") is None

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown enrichment provider"):
            EnricherFactory.create(Settings(enrichment_provider="goodreads"))
