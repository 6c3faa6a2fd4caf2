from abc import ABC, abstractmethod

from shelfscan.enrichment.models import EnrichedRecord
from shelfscan.pipeline.deadline import Deadline


class BaseEnricher(ABC):
    """Contract for book metadata lookups."""

    @abstractmethod
    def enrich(
        self,
        title: str,
        author: str = "",
        deadline: Deadline | None = None,
    ) -> EnrichedRecord | None:
        """Find the catalog record that best matches ``title`` and ``author``.

        Returns None when nothing matches or the lookup service misbehaves.
        Never raises for "not found".
        """


class NullEnricher(BaseEnricher):
    """Enricher that never finds anything. Every guess stays low confidence."""

    def enrich(
        self,
        title: str,
        author: str = "",
        deadline: Deadline | None = None,
    ) -> EnrichedRecord | None:
        _ = title, author, deadline
        return None
