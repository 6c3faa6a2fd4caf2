from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class EnrichedRecord:
    """Catalog metadata for one book, as returned by the lookup service."""

    title: str
    author: str = ""
    publisher: str | None = None
    publish_year: int | str | None = None
    pages: int | str | None = None
    description: str | None = None
    cover_image_url: str | None = None
    isbn: str | None = None
    genre: str | None = None
    age_range: str | None = None
    series: str | None = None
    series_number: int | float | None = None
    language: str | None = None
    source: str | None = None
    confidence: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
