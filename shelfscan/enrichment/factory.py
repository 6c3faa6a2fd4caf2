from shelfscan.config.settings import Settings
from shelfscan.enrichment.base import BaseEnricher, NullEnricher
from shelfscan.enrichment.simania_enricher import SimaniaEnricher


class EnricherFactory:
    """Creates the configured metadata enricher."""

    PROVIDERS = ("simania", "none")

    @classmethod
    def create(cls, settings: Settings) -> BaseEnricher:
        provider = settings.enrichment_provider.lower()
        if provider == "simania":
            return SimaniaEnricher(
                base_url=settings.enrichment_base_url,
                timeout_seconds=settings.enrichment_timeout_seconds,
                max_results=settings.enrichment_max_results,
            )
        if provider == "none":
            return NullEnricher()
        raise ValueError(
            f"Unknown enrichment provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
