from dataclasses import asdict, dataclass, field
from typing import Any

CONFIDENCE_HIGH = "high"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_LOW = "low"

CONFIDENCE_RANK = {CONFIDENCE_HIGH: 3, CONFIDENCE_MEDIUM: 2, CONFIDENCE_LOW: 1}


@dataclass
class BookCandidate:
    """A detected book after enrichment, as presented to the user."""

    title: str
    author: str = ""
    series: str | None = None
    series_number: int | float | None = None
    genre: str | None = None
    age_range: str | None = None
    publisher: str | None = None
    publish_year: int | str | None = None
    pages: int | str | None = None
    description: str | None = None
    cover_image_url: str | None = None
    isbn: str | None = None
    language: str | None = None
    source: str | None = None
    confidence: str = CONFIDENCE_LOW
    confidence_score: int = 0
    already_owned: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DetectionResult:
    books: list[BookCandidate] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.books)

    def to_dict(self) -> dict[str, Any]:
        return {"books": [book.to_dict() for book in self.books], "count": self.count}
