"""Parse the language model's reply into RawGuess objects."""

import json
import math
import re
from typing import Any

from shelfscan.logging.logger import Log
from shelfscan.pipeline.exceptions import VisionError
from shelfscan.vision.models import RawGuess

MIN_TITLE_LENGTH = 2

_ARRAY_SPAN = re.compile(r"\[[\s\S]*\]")
_DIGITS = re.compile(r"\d+")


def normalize_series_number(value: Any) -> int | float | None:
    """Coerce a series number from a number, a numeric string, or the first digit run."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _as_number(float(value))
    text = str(value).strip()
    if not text:
        return None
    try:
        return _as_number(float(text))
    except ValueError:
        pass
    match = _DIGITS.search(text)
    if match:
        return int(match.group(0))
    return None


def _as_number(value: float) -> int | float | None:
    if not math.isfinite(value):
        return None
    return int(value) if value.is_integer() else value


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _strip_fences(raw: str) -> str:
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.splitlines()
        if lines and lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)
    return cleaned


def validate_books(items: list[Any]) -> list[RawGuess]:
    """Drop entries without a meaningful title and normalize field aliases."""
    guesses: list[RawGuess] = []
    for item in items:
        if not isinstance(item, dict) or not item.get("title"):
            continue
        title = str(item["title"]).strip()
        if len(title) < MIN_TITLE_LENGTH:
            continue
        series_number = item.get("series_number")
        if series_number is None:
            series_number = item.get("seriesNumber")
        if series_number is None:
            series_number = item.get("seriesIndex")
        guesses.append(
            RawGuess(
                title=title,
                author=_clean(item.get("author")) or "",
                series=_clean(item.get("series")) or _clean(item.get("series_title")),
                series_number=normalize_series_number(series_number),
                genre=_clean(item.get("genre")),
                age_range=_clean(item.get("age_range")),
            )
        )
    return guesses


def parse_books_response(raw: str) -> list[RawGuess]:
    """Accept a JSON array, an object with a ``books`` array, or text around an array.

    Raises:
        VisionError: if no JSON array can be recovered from ``raw``.
    """
    cleaned = _strip_fences(raw)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, list):
        return validate_books(parsed)
    if isinstance(parsed, dict) and isinstance(parsed.get("books"), list):
        return validate_books(parsed["books"])

    match = _ARRAY_SPAN.search(cleaned)
    if match:
        try:
            extracted = json.loads(match.group(0))
        except json.JSONDecodeError:
            extracted = None
        if isinstance(extracted, list):
            return validate_books(extracted)

    Log.debug(f"Unparseable vision response:\n{raw}")
    raise VisionError("Could not parse JSON response from vision provider")
