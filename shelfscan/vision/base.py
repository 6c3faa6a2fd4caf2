from abc import ABC, abstractmethod
from collections.abc import Callable

from shelfscan.pipeline.deadline import Deadline
from shelfscan.vision.models import RawGuess

STRATEGY_AI_ONLY = "ai_only"
STRATEGY_HYBRID = "hybrid"


class BaseBookDetector(ABC):
    """Contract for turning a shelf photo into raw book guesses."""

    strategy: str = STRATEGY_AI_ONLY

    @property
    def uses_ocr(self) -> bool:
        return self.strategy == STRATEGY_HYBRID

    @property
    def model_name(self) -> str:
        return ""

    @abstractmethod
    def detect(
        self,
        image_bytes: bytes,
        mime_type: str,
        deadline: Deadline,
        on_stage: Callable[[str], None] | None = None,
    ) -> list[RawGuess]:
        """Read every visible book off the image.

        Args:
            image_bytes: A validated JPEG or PNG image.
            mime_type: The image's MIME type.
            deadline: Job budget bounding every outbound call.
            on_stage: Called with ``"detecting"`` right before the model call.

        Returns:
            Guesses in reading order. May be empty.

        Raises:
            DetectionError: subclasses carry the failure code.
        """
