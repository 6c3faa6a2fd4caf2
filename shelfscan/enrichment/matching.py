"""Fuzzy title/author scoring used to pick the best lookup result."""

import re

from rapidfuzz.distance import Levenshtein

from shelfscan.enrichment.models import EnrichedRecord

_NIQQUD = re.compile("[\u0591-\u05C7]")
_NON_WORD = re.compile("[^A-Za-z0-9_\\s\u0590-\u05FF]")
_WHITESPACE = re.compile(r"\s+")

DESCRIPTION_BONUS_MIN_CHARS = 100


def normalize_string(value: str | None) -> str:
    """Lowercase, drop Hebrew vowel points and punctuation, collapse whitespace."""
    text = (value or "").lower()
    text = _NIQQUD.sub("", text)
    text = _NON_WORD.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def similarity(a: str, b: str) -> float:
    """1.0 for identical strings, falling towards 0.0 with edit distance."""
    return Levenshtein.normalized_similarity(a, b)


def author_similarity(author_a: str, author_b: str) -> float:
    """Author names compared with allowance for initials and transliteration."""
    if not author_a or not author_b:
        return 0.0
    a = normalize_string(author_a)
    b = normalize_string(author_b)
    if a == b:
        return 1.0
    if a in b or b in a:
        return 0.85

    parts_a = a.split()
    parts_b = b.split()
    if parts_a and parts_b:
        if parts_a[-1] == parts_b[-1]:
            return 0.9
        if similarity(parts_a[-1], parts_b[-1]) > 0.8:
            return 0.8

    common = 0
    for part_a in parts_a:
        # initials
        if len(part_a) <= 1:
            continue
        for part_b in parts_b:
            if len(part_b) <= 1:
                continue
            if part_a == part_b or similarity(part_a, part_b) > 0.85:
                common += 1
                break
    if common:
        return 0.6 + common * 0.15

    return similarity(a, b)


def _title_points(candidate: str, wanted: str) -> int:
    if not candidate or not wanted:
        return 0
    if candidate == wanted:
        return 60
    if wanted in candidate or candidate in wanted:
        return 50
    sim = similarity(candidate, wanted)
    if sim > 0.8:
        return 45
    if sim > 0.6:
        return 30
    if sim > 0.4:
        return 15
    return 0


def _author_points(candidate: str, wanted: str) -> int:
    if not wanted or not candidate:
        return 0
    sim = author_similarity(candidate, wanted)
    if sim > 0.9:
        return 30
    if sim > 0.7:
        return 25
    if sim > 0.5:
        return 15
    if sim > 0.3:
        return 5
    return 0


def match_score(record: EnrichedRecord, title: str, author: str = "") -> int:
    """Score how well ``record`` matches the searched title and author."""
    score = _title_points(normalize_string(record.title), normalize_string(title))
    score += _author_points(normalize_string(record.author), author)
    if record.isbn:
        score += 10
    if record.cover_image_url:
        score += 5
    if record.description and len(record.description) > DESCRIPTION_BONUS_MIN_CHARS:
        score += 5
    return score


def find_best_match(
    records: list[EnrichedRecord], title: str, author: str = ""
) -> tuple[EnrichedRecord, int] | None:
    """Highest-scoring record and its score. Ties keep the earlier record."""
    if not records:
        return None
    best, best_score = records[0], 0
    for record in records:
        score = match_score(record, title, author)
        if score > best_score:
            best, best_score = record, score
    return best, best_score
