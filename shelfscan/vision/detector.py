"""Book detection from shelf images, with optional OCR assistance."""

from collections.abc import Callable
from pathlib import Path

from shelfscan.logging.logger import Log
from shelfscan.pipeline.deadline import Deadline
from shelfscan.pipeline.exceptions import DetectionTimeoutError
from shelfscan.vision.base import STRATEGY_AI_ONLY, STRATEGY_HYBRID, BaseBookDetector
from shelfscan.vision.client_base import BaseVisionClient
from shelfscan.vision.models import RawGuess
from shelfscan.vision.ocr_client import GoogleVisionOcrClient
from shelfscan.vision.parser import parse_books_response
from shelfscan.vision.prompt_loader import build_ocr_prompt, build_simple_prompt, load_system_prompt
from shelfscan.vision.spine_layout import format_structured_text


class BookDetector(BaseBookDetector):
    """Detects books with a vision language model.

    In hybrid mode the image first goes through OCR and the positioned text
    is handed to the model alongside the image. When OCR finds nothing or
    fails, detection continues from the image alone unless the job budget
    is already spent.
    """

    def __init__(
        self,
        *,
        client: BaseVisionClient,
        model: str,
        timeout_seconds: float,
        strategy: str = STRATEGY_AI_ONLY,
        ocr_client: GoogleVisionOcrClient | None = None,
        group_threshold_px: int = 100,
        prompt_dir: Path | None = None,
    ) -> None:
        if strategy not in (STRATEGY_AI_ONLY, STRATEGY_HYBRID):
            raise ValueError(
                f"Unknown vision strategy '{strategy}'. "
                f"Choose from: {[STRATEGY_AI_ONLY, STRATEGY_HYBRID]}"
            )
        if strategy == STRATEGY_HYBRID and ocr_client is None:
            raise ValueError("hybrid vision strategy requires an OCR client")
        self.strategy = strategy
        self._client = client
        self._model = model
        self._timeout_seconds = timeout_seconds
        self._ocr_client = ocr_client
        self._group_threshold_px = group_threshold_px
        self._prompt_dir = prompt_dir
        self._system_prompt = load_system_prompt(prompt_dir)

    @property
    def model_name(self) -> str:
        return self._model

    def detect(
        self,
        image_bytes: bytes,
        mime_type: str,
        deadline: Deadline,
        on_stage: Callable[[str], None] | None = None,
    ) -> list[RawGuess]:
        prompt = None
        if self.strategy == STRATEGY_HYBRID and self._ocr_client is not None:
            prompt = self._ocr_prompt(self._ocr_client, image_bytes, deadline)
        if prompt is None:
            prompt = build_simple_prompt(self._prompt_dir)

        if on_stage is not None:
            on_stage("detecting")
        raw_response = self._client.create_vision_completion(
            model=self._model,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            image_bytes=image_bytes,
            mime_type=mime_type,
            timeout_seconds=deadline.cap(self._timeout_seconds, "detecting"),
        )
        Log.debug(f"Vision raw response:\n{raw_response}")

        guesses = parse_books_response(raw_response)
        Log.info(f"Vision detection complete: {len(guesses)} books ({self.strategy})")
        return guesses

    def _ocr_prompt(
        self, ocr_client: GoogleVisionOcrClient, image_bytes: bytes, deadline: Deadline
    ) -> str | None:
        """Build the OCR-aware prompt, or None to fall back to image-only detection."""
        try:
            ocr = ocr_client.extract(image_bytes, deadline)
            if not ocr.blocks:
                Log.info("OCR found no text, falling back to AI-only detection")
                return None
            structured = format_structured_text(ocr, self._group_threshold_px)
        except DetectionTimeoutError:
            if deadline.expired:
                raise
            Log.warning("OCR timed out, falling back to AI-only detection")
            return None
        except Exception as exc:
            Log.warning(f"OCR failed, falling back to AI-only detection: {exc}")
            return None

        return build_ocr_prompt(structured, self._prompt_dir)
