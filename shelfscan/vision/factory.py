from typing import ClassVar

from shelfscan.config.settings import Settings
from shelfscan.vision.base import STRATEGY_HYBRID, BaseBookDetector
from shelfscan.vision.client_base import BaseVisionClient
from shelfscan.vision.detector import BookDetector
from shelfscan.vision.example_client_adapter import ExampleVisionClientAdapter
from shelfscan.vision.ocr_client import GoogleVisionOcrClient
from shelfscan.vision.openai_client_adapter import OpenAIVisionClientAdapter


class VisionDetectorFactory:
    """Creates the configured book detector."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "gemini": "https://generativelanguage.googleapis.com/v1beta/openai/",
        "openrouter": "https://openrouter.ai/api/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseBookDetector:
        """Create a configured detector from application settings."""
        provider = settings.vision_provider.lower()
        strategy = settings.vision_strategy.lower()

        client: BaseVisionClient
        if provider == "example":
            client = ExampleVisionClientAdapter()
            model = "example"
        else:
            client = OpenAIVisionClientAdapter(
                api_key=settings.vision_api_key,
                timeout_seconds=settings.vision_timeout_seconds,
                base_url=cls._resolve_base_url(provider, settings),
            )
            model = settings.vision_model_name

        ocr_client = None
        if strategy == STRATEGY_HYBRID:
            ocr_client = GoogleVisionOcrClient(
                api_key=settings.ocr_api_key,
                endpoint=settings.ocr_endpoint,
                timeout_seconds=settings.ocr_timeout_seconds,
            )

        return BookDetector(
            client=client,
            model=model,
            timeout_seconds=settings.vision_timeout_seconds,
            strategy=strategy,
            ocr_client=ocr_client,
            group_threshold_px=settings.ocr_group_threshold_px,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = (settings.vision_base_url or "").strip()
            if not url:
                raise ValueError(
                    "vision_base_url is required for vision_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return (settings.vision_base_url or "").strip() or default_base_url
        supported = ["example", "openai", "openai_compatible", *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS)]
        raise ValueError(f"Unknown vision provider '{provider}'. Choose from: {supported}")
