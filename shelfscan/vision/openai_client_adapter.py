import base64

import httpx
import openai

from shelfscan.pipeline.exceptions import (
    DetectionTimeoutError,
    RateLimitedError,
    ServiceUnavailableError,
    VisionError,
)
from shelfscan.vision.client_base import BaseVisionClient


class OpenAIVisionClientAdapter(BaseVisionClient):
    """Vision client built on the OpenAI-compatible chat completions API.

    Gemini and OpenRouter expose the same API, so one adapter serves them all.
    """

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: float,
        base_url: str | None = None,
        max_tokens: int = 4096,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )
        self._max_tokens = max_tokens

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
        data_url = f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"
        messages: list[dict[str, object]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append(
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": user_prompt},
                    {"type": "image_url", "image_url": {"url": data_url}},
                ],
            }
        )
        try:
            response = self._client.with_options(timeout=timeout_seconds).chat.completions.create(
                model=model,
                temperature=0.0,
                max_tokens=self._max_tokens,
                messages=messages,
            )
        except (openai.APITimeoutError, httpx.TimeoutException) as exc:
            raise DetectionTimeoutError(f"Vision provider timed out: {exc}") from exc
        except openai.RateLimitError as exc:
            raise RateLimitedError(f"Vision provider rate limited: {exc}") from exc
        except (openai.APIConnectionError, httpx.ConnectError) as exc:
            raise ServiceUnavailableError(f"Vision provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise VisionError(f"Vision provider API error: {exc}") from exc

        if not response.choices:
            raise VisionError("Vision provider returned no choices")
        content = response.choices[0].message.content
        if not content:
            raise VisionError("Vision provider returned empty response")
        return content
