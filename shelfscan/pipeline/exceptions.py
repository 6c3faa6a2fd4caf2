"""Detection error taxonomy and the exceptions that carry it."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ErrorSpec:
    message: str
    can_retry: bool
    status_code: int


class ErrorCode(str, Enum):
    """Machine-readable failure codes written to a failed job."""

    INVALID_IMAGE = "INVALID_IMAGE"
    CORRUPT_IMAGE = "CORRUPT_IMAGE"
    IMAGE_TOO_LARGE = "IMAGE_TOO_LARGE"
    OCR_FAILED = "OCR_FAILED"
    AI_FAILED = "AI_FAILED"
    NO_BOOKS_DETECTED = "NO_BOOKS_DETECTED"
    TIMEOUT = "TIMEOUT"
    RATE_LIMITED = "RATE_LIMITED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    DATABASE_ERROR = "DATABASE_ERROR"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"

    @property
    def spec(self) -> ErrorSpec:
        return _ERROR_SPECS[self]

    @property
    def message(self) -> str:
        return self.spec.message

    @property
    def can_retry(self) -> bool:
        return self.spec.can_retry

    @property
    def status_code(self) -> int:
        return self.spec.status_code

    def to_response(self) -> dict[str, object]:
        """Client-facing error body."""
        return {"code": self.value, "message": self.message, "canRetry": self.can_retry}


_ERROR_SPECS: dict[ErrorCode, ErrorSpec] = {
    ErrorCode.INVALID_IMAGE: ErrorSpec(
        "Invalid image format. Please upload a JPEG or PNG image.", False, 400
    ),
    ErrorCode.CORRUPT_IMAGE: ErrorSpec(
        "Image file is corrupted or unreadable. Please try another image.", False, 400
    ),
    ErrorCode.IMAGE_TOO_LARGE: ErrorSpec(
        "Image is too large. Maximum 10MB allowed.", False, 413
    ),
    ErrorCode.OCR_FAILED: ErrorSpec(
        "Failed to extract text from image. Please try a clearer image.", True, 422
    ),
    ErrorCode.AI_FAILED: ErrorSpec(
        "Failed to identify books. Please try another image.", True, 422
    ),
    ErrorCode.NO_BOOKS_DETECTED: ErrorSpec(
        "No books detected in image. "
        "Please try an image with more visible book information.",
        True,
        422,
    ),
    ErrorCode.TIMEOUT: ErrorSpec(
        "Processing took too long. Please try a simpler image.", True, 504
    ),
    ErrorCode.RATE_LIMITED: ErrorSpec(
        "Processing limit reached. Please try again in a few minutes.", True, 429
    ),
    ErrorCode.SERVICE_UNAVAILABLE: ErrorSpec(
        "Processing service is temporarily unavailable. Please try again later.",
        True,
        503,
    ),
    ErrorCode.DATABASE_ERROR: ErrorSpec(
        "Failed to save detection results. Please try again.", True, 500
    ),
    ErrorCode.UNEXPECTED_ERROR: ErrorSpec(
        "An unexpected error occurred. Please try again.", True, 500
    ),
}


class DetectionError(Exception):
    """Base exception for all detection pipeline errors."""

    code: ErrorCode = ErrorCode.UNEXPECTED_ERROR

    def __init__(self, message: str = "", *, code: ErrorCode | None = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(message or self.code.message)


class ImageValidationError(DetectionError):
    """Raised synchronously when an upload is rejected before a job exists."""

    code = ErrorCode.INVALID_IMAGE


class OcrError(DetectionError):
    """Raised when the text-extraction provider fails."""

    code = ErrorCode.OCR_FAILED


class VisionError(DetectionError):
    """Raised when the language model call fails or returns garbage."""

    code = ErrorCode.AI_FAILED


class NoBooksDetectedError(DetectionError):
    code = ErrorCode.NO_BOOKS_DETECTED


class DetectionTimeoutError(DetectionError):
    """Raised when a stage or the whole job exceeds its time budget."""

    code = ErrorCode.TIMEOUT


class RateLimitedError(DetectionError):
    code = ErrorCode.RATE_LIMITED


class ServiceUnavailableError(DetectionError):
    """Raised when an upstream dependency cannot be reached."""

    code = ErrorCode.SERVICE_UNAVAILABLE


class JobNotFoundError(DetectionError):
    """Raised when a job does not exist or is not visible to the caller."""


class ImageNotFoundError(DetectionError):
    """Raised when a job's source image is missing from storage."""

    code = ErrorCode.UNEXPECTED_ERROR


class JobPersistenceError(DetectionError):
    """Raised when a job write does not return the row it should have stored."""

    code = ErrorCode.DATABASE_ERROR
