"""Combine raw vision guesses with catalog metadata into ranked candidates."""

from concurrent.futures import Future, ThreadPoolExecutor, wait

from shelfscan.database.repositories.catalog_repository import ownership_key
from shelfscan.enrichment.base import BaseEnricher
from shelfscan.enrichment.models import EnrichedRecord
from shelfscan.logging.logger import Log
from shelfscan.pipeline.deadline import Deadline
from shelfscan.pipeline.exceptions import DetectionTimeoutError
from shelfscan.pipeline.models import (
    CONFIDENCE_HIGH,
    CONFIDENCE_LOW,
    CONFIDENCE_MEDIUM,
    CONFIDENCE_RANK,
    BookCandidate,
)
from shelfscan.vision.models import RawGuess
from shelfscan.vision.parser import normalize_series_number


def dedup_key(book: BookCandidate) -> str:
    series_number = "" if book.series_number is None else str(book.series_number)
    return "|".join(
        (
            book.title.strip().lower(),
            (book.author or "").strip().lower(),
            (book.series or "").strip().lower(),
            series_number,
        )
    )


def low_confidence(guess: RawGuess) -> BookCandidate:
    return BookCandidate(
        title=guess.title,
        author=guess.author,
        series=guess.series,
        series_number=guess.series_number,
        genre=guess.genre,
        age_range=guess.age_range,
        confidence=CONFIDENCE_LOW,
        confidence_score=0,
    )


class ResultMerger:
    """Enriches guesses concurrently and folds the results into candidates."""

    def __init__(
        self,
        enricher: BaseEnricher,
        *,
        max_workers: int = 8,
        high_threshold: int = 70,
        medium_threshold: int = 40,
    ) -> None:
        self._enricher = enricher
        self._max_workers = max_workers
        self._high_threshold = high_threshold
        self._medium_threshold = medium_threshold

    def merge(
        self,
        guesses: list[RawGuess],
        owned_keys: set[str],
        deadline: Deadline | None = None,
    ) -> list[BookCandidate]:
        """Enrich, deduplicate, tag ownership and rank in one call."""
        candidates = self.deduplicate(self.enrich_all(guesses, deadline))
        self.apply_ownership(candidates, owned_keys)
        return self.rank(candidates)

    def enrich_all(
        self,
        guesses: list[RawGuess],
        deadline: Deadline | None = None,
    ) -> list[BookCandidate]:
        """Enrich every guess in parallel. Output order follows input order.

        Raises:
            DetectionTimeoutError: if the lookups outlive the job budget.
        """
        if not guesses:
            return []
        executor = ThreadPoolExecutor(
            max_workers=min(self._max_workers, len(guesses)),
            thread_name_prefix="enrich",
        )
        try:
            futures = [executor.submit(self._enrich_one, guess, deadline) for guess in guesses]
            timeout = deadline.remaining() if deadline is not None else None
            _, pending = wait(futures, timeout=timeout)
            if pending:
                raise DetectionTimeoutError(
                    f"Enrichment unfinished for {len(pending)} of {len(futures)} books"
                )
            return [self._collect(future, guess) for future, guess in zip(futures, guesses)]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _enrich_one(self, guess: RawGuess, deadline: Deadline | None) -> BookCandidate:
        record = self._enricher.enrich(guess.title, guess.author, deadline)
        return self.combine(guess, record)

    @staticmethod
    def _collect(future: Future, guess: RawGuess) -> BookCandidate:
        try:
            return future.result()
        except Exception as exc:
            Log.warning(f"Enrichment error for '{guess.title}': {exc}")
            return low_confidence(guess)

    def combine(self, guess: RawGuess, record: EnrichedRecord | None) -> BookCandidate:
        """Fold one enrichment record into its guess according to the match tier."""
        if record is None or record.confidence < self._medium_threshold:
            return low_confidence(guess)
        if not record.title.strip():
            return low_confidence(guess)

        if record.confidence >= self._high_threshold:
            return BookCandidate(
                title=record.title,
                author=record.author,
                series=record.series,
                series_number=record.series_number,
                genre=record.genre or guess.genre,
                age_range=record.age_range or guess.age_range,
                publisher=record.publisher,
                publish_year=record.publish_year,
                pages=record.pages,
                description=record.description,
                cover_image_url=record.cover_image_url,
                isbn=record.isbn,
                language=record.language,
                source=record.source,
                confidence=CONFIDENCE_HIGH,
                confidence_score=record.confidence,
            )

        series_number = normalize_series_number(guess.series_number)
        if series_number is None:
            series_number = normalize_series_number(record.series_number)
        return BookCandidate(
            title=guess.title,
            author=guess.author or record.author,
            series=guess.series or record.series,
            series_number=series_number,
            genre=guess.genre or record.genre,
            age_range=guess.age_range or record.age_range,
            publisher=record.publisher,
            publish_year=record.publish_year,
            pages=record.pages,
            description=record.description,
            cover_image_url=record.cover_image_url,
            isbn=record.isbn,
            language=record.language,
            source=record.source,
            confidence=CONFIDENCE_MEDIUM,
            confidence_score=record.confidence,
        )

    @staticmethod
    def deduplicate(candidates: list[BookCandidate]) -> list[BookCandidate]:
        """Keep the first candidate for each title/author/series/number key."""
        seen: set[str] = set()
        unique: list[BookCandidate] = []
        for candidate in candidates:
            key = dedup_key(candidate)
            if key in seen:
                continue
            seen.add(key)
            unique.append(candidate)
        return unique

    @staticmethod
    def apply_ownership(candidates: list[BookCandidate], owned_keys: set[str]) -> int:
        """Flag candidates already in the household library. Returns how many."""
        owned = 0
        for candidate in candidates:
            candidate.already_owned = (
                ownership_key(candidate.title, candidate.author, candidate.series) in owned_keys
            )
            owned += candidate.already_owned
        return owned

    @staticmethod
    def rank(candidates: list[BookCandidate]) -> list[BookCandidate]:
        """Stable sort by tier, then score, both descending."""
        return sorted(
            candidates,
            key=lambda c: (CONFIDENCE_RANK[c.confidence], c.confidence_score),
            reverse=True,
        )
