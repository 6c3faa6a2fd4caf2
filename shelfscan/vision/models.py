from dataclasses import asdict, dataclass, field
from typing import Any

ORIENTATION_VERTICAL = "vertical"
ORIENTATION_HORIZONTAL = "horizontal"


@dataclass
class RawGuess:
    """One book as read off the image by the language model."""

    title: str
    author: str = ""
    series: str | None = None
    series_number: int | float | None = None
    genre: str | None = None
    age_range: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class OcrBlock:
    """A single word or phrase found by OCR, with its pixel position."""

    text: str
    confidence: float
    center_x: int
    center_y: int
    top: int
    left: int
    orientation: str = ORIENTATION_HORIZONTAL


@dataclass
class OcrResult:
    full_text: str = ""
    blocks: list[OcrBlock] = field(default_factory=list)
