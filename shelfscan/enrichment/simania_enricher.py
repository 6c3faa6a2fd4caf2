import re
from typing import Any

import httpx

from shelfscan.enrichment.base import BaseEnricher
from shelfscan.enrichment.matching import find_best_match
from shelfscan.enrichment.models import EnrichedRecord
from shelfscan.logging.logger import Log
from shelfscan.pipeline.deadline import Deadline
from shelfscan.pipeline.exceptions import DetectionTimeoutError
from shelfscan.vision.parser import normalize_series_number

_IMAGE_NAME = re.compile(r"[?&]imageName=([^&]+)")


def normalize_cover_url(book: dict[str, Any], base_url: str) -> str | None:
    """Absolute cover URL for a Simania search hit, or None."""
    if book.get("COVER"):
        return book["COVER"]
    image_link = book.get("imageLink")
    if not image_link:
        return None
    if "loadJpg.php" in image_link:
        match = _IMAGE_NAME.search(image_link)
        if match:
            return f"{base_url}/bookimages/{match.group(1)}"
    return f"{base_url}{image_link}"


class SimaniaEnricher(BaseEnricher):
    """Looks books up in the Simania catalog search API."""

    SOURCE = "Simania"
    LANGUAGE = "he"

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float,
        max_results: int = 5,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._max_results = max_results
        self._http = http_client or httpx.Client()

    def enrich(
        self,
        title: str,
        author: str = "",
        deadline: Deadline | None = None,
    ) -> EnrichedRecord | None:
        query = f"{title} {author}" if author else title
        records = self.search(query, deadline)
        if not records and author:
            Log.debug(f"No results for '{query}', retrying with title only")
            records = self.search(title, deadline)

        best = find_best_match(records, title, author)
        if best is None:
            return None
        record, score = best
        record.confidence = max(0, min(score, 100))
        Log.debug(f"Best match for '{title}': '{record.title}' (score {score})")
        return record

    def search(self, query: str, deadline: Deadline | None = None) -> list[EnrichedRecord]:
        """Run one search. Transport and protocol failures yield an empty list."""
        timeout = self._timeout_seconds
        if deadline is not None:
            try:
                timeout = deadline.cap(timeout, "enriching")
            except DetectionTimeoutError:
                return []
        try:
            response = self._http.get(
                f"{self._base_url}/api/search",
                params={"query": query, "page": 1},
                timeout=timeout,
            )
        except httpx.HTTPError as exc:
            Log.warning(f"Simania search failed for '{query}': {exc}")
            return []

        if response.status_code >= 400:
            Log.warning(f"Simania API error: {response.status_code}")
            return []

        try:
            body = response.json()
        except ValueError as exc:
            Log.warning(f"Simania returned invalid JSON for '{query}': {exc}")
            return []

        if not isinstance(body, dict) or not body.get("success"):
            return []
        books = (body.get("data") or {}).get("books")
        if not books:
            return []
        return [self._to_record(book) for book in books[: self._max_results]]

    def _to_record(self, book: dict[str, Any]) -> EnrichedRecord:
        return EnrichedRecord(
            title=book.get("NAME") or "",
            author=book.get("AUTHOR") or "",
            publisher=book.get("PUBLISHER") or None,
            publish_year=book.get("YEAR") or book.get("bookYear") or None,
            pages=book.get("PAGES") or None,
            description=book.get("DESCRIPTION") or None,
            cover_image_url=normalize_cover_url(book, self._base_url),
            isbn=book.get("ISBN") or None,
            genre=book.get("CATEGORY") or None,
            series=book.get("SERIES") or None,
            series_number=normalize_series_number(book.get("seriesNumber") or None),
            language=self.LANGUAGE,
            source=self.SOURCE,
        )
