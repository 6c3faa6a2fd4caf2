import base64
import time

import httpx

from shelfscan.logging.logger import Log
from shelfscan.pipeline.deadline import Deadline
from shelfscan.pipeline.exceptions import (
    DetectionTimeoutError,
    OcrError,
    RateLimitedError,
    ServiceUnavailableError,
)
from shelfscan.vision.models import OcrResult
from shelfscan.vision.spine_layout import parse_annotations


class GoogleVisionOcrClient:
    """Text detection through the Google Cloud Vision REST API."""

    def __init__(
        self,
        *,
        api_key: str,
        endpoint: str,
        timeout_seconds: float,
        max_attempts: int = 3,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self._endpoint = endpoint
        self._timeout_seconds = timeout_seconds
        self._max_attempts = max_attempts
        self._http = http_client or httpx.Client()

    def extract(self, image_bytes: bytes, deadline: Deadline) -> OcrResult:
        """Run TEXT_DETECTION on the image.

        Transport failures are retried with exponential backoff while the
        job budget allows.
        """
        payload = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image_bytes).decode("ascii")},
                    "features": [{"type": "TEXT_DETECTION"}],
                }
            ]
        }
        attempt = 0
        while True:
            attempt += 1
            timeout = deadline.cap(self._timeout_seconds, "ocr")
            try:
                response = self._http.post(
                    self._endpoint,
                    params={"key": self._api_key},
                    json=payload,
                    timeout=timeout,
                )
                break
            except httpx.TimeoutException as exc:
                raise DetectionTimeoutError(f"OCR request timed out: {exc}") from exc
            except httpx.TransportError as exc:
                delay = 2.0**attempt
                if attempt >= self._max_attempts or deadline.remaining() <= delay:
                    raise ServiceUnavailableError(f"OCR provider unreachable: {exc}") from exc
                Log.warning(f"OCR attempt {attempt} failed ({exc}), retrying in {delay:.0f}s")
                time.sleep(delay)
            except httpx.HTTPError as exc:
                raise OcrError(f"OCR request failed: {exc}") from exc

        if response.status_code == 429:
            raise RateLimitedError("OCR provider rate limited")
        if response.status_code >= 400:
            raise OcrError(f"OCR provider returned HTTP {response.status_code}")

        try:
            body = response.json()
        except (ValueError, httpx.HTTPError) as exc:
            raise OcrError(f"OCR provider returned invalid JSON: {exc}") from exc

        first = self._first_response(body)
        error = first.get("error")
        if error:
            message = error.get("message", "unknown error") if isinstance(error, dict) else error
            raise OcrError(f"OCR failed: {message}")

        annotations = first.get("textAnnotations") or []
        if not isinstance(annotations, list):
            raise OcrError("OCR response has malformed textAnnotations")
        result = parse_annotations(annotations)
        Log.info(f"OCR detected {len(result.blocks)} text blocks")
        return result

    @staticmethod
    def _first_response(body: object) -> dict:
        if not isinstance(body, dict):
            raise OcrError("OCR response is not a JSON object")
        responses = body.get("responses") or [{}]
        if not isinstance(responses, list) or not isinstance(responses[0], dict):
            raise OcrError("OCR response has malformed responses")
        return responses[0]
