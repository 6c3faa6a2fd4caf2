import pytest

from shelfscan.pipeline.exceptions import (
    DetectionError,
    DetectionTimeoutError,
    ErrorCode,
    ImageValidationError,
    NoBooksDetectedError,
    OcrError,
    RateLimitedError,
    VisionError,
)


class TestErrorCode:
    def test_every_code_has_a_message(self) -> None:
        for code in ErrorCode:
            assert code.message
            assert 400 <= code.status_code < 600

    @pytest.mark.parametrize(
        ("code", "can_retry"),
        [
            (ErrorCode.INVALID_IMAGE, False),
            (ErrorCode.CORRUPT_IMAGE, False),
            (ErrorCode.IMAGE_TOO_LARGE, False),
            (ErrorCode.TIMEOUT, True),
            (ErrorCode.RATE_LIMITED, True),
            (ErrorCode.NO_BOOKS_DETECTED, True),
        ],
    )
    def test_retryability(self, code: ErrorCode, can_retry: bool) -> None:
        assert code.can_retry is can_retry

    def test_to_response(self) -> None:
        assert ErrorCode.IMAGE_TOO_LARGE.to_response() == {
            "code": "IMAGE_TOO_LARGE",
            "message": "Image is too large. Maximum 10MB allowed.",
            "canRetry": False,
        }

    def test_status_codes(self) -> None:
        assert ErrorCode.IMAGE_TOO_LARGE.status_code == 413
        assert ErrorCode.RATE_LIMITED.status_code == 429
        assert ErrorCode.TIMEOUT.status_code == 504


class TestDetectionError:
    @pytest.mark.parametrize(
        ("exc_class", "code"),
        [
            (OcrError, ErrorCode.OCR_FAILED),
            (VisionError, ErrorCode.AI_FAILED),
            (NoBooksDetectedError, ErrorCode.NO_BOOKS_DETECTED),
            (DetectionTimeoutError, ErrorCode.TIMEOUT),
            (RateLimitedError, ErrorCode.RATE_LIMITED),
            (ImageValidationError, ErrorCode.INVALID_IMAGE),
        ],
    )
    def test_subclass_codes(self, exc_class: type[DetectionError], code: ErrorCode) -> None:
        assert exc_class().code is code

    def test_default_message_is_code_message(self) -> None:
        assert str(NoBooksDetectedError()) == ErrorCode.NO_BOOKS_DETECTED.message

    def test_code_override(self) -> None:
        exc = ImageValidationError("too big", code=ErrorCode.IMAGE_TOO_LARGE)
        assert exc.code is ErrorCode.IMAGE_TOO_LARGE
        assert str(exc) == "too big"
        # class attribute untouched
        assert ImageValidationError.code is ErrorCode.INVALID_IMAGE
