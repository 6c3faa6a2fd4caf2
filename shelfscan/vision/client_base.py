from abc import ABC, abstractmethod


class BaseVisionClient(ABC):
    """Contract for provider-specific vision language model clients."""

    @abstractmethod
    def create_vision_completion(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        image_bytes: bytes,
        mime_type: str,
        timeout_seconds: float,
    ) -> str:
        """Send one image plus instructions and return the reply as plain text.

        Raises:
            VisionError: on API errors or an empty reply.
            RateLimitedError: when the provider throttles the request.
            DetectionTimeoutError: when the call exceeds ``timeout_seconds``.
            ServiceUnavailableError: when the provider cannot be reached.
        """
