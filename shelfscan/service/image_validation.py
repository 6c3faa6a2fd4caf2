import io
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from shelfscan.pipeline.exceptions import ErrorCode, ImageValidationError

# Declared MIME type -> Pillow format name and storage extension.
SUPPORTED_FORMATS: dict[str, tuple[str, str]] = {
    "image/jpeg": ("JPEG", "jpg"),
    "image/jpg": ("JPEG", "jpg"),
    "image/png": ("PNG", "png"),
}


@dataclass(frozen=True)
class ValidatedImage:
    data: bytes
    mime_type: str
    extension: str
    width: int
    height: int


def validate_image(data: bytes | None, mime_type: str | None, max_size_mb: int) -> ValidatedImage:
    """Reject uploads that are missing, too large, not JPEG/PNG, or undecodable.

    Raises:
        ImageValidationError: carrying INVALID_IMAGE, IMAGE_TOO_LARGE or CORRUPT_IMAGE.
    """
    if not data:
        raise ImageValidationError("No image provided")

    if len(data) > max_size_mb * 1024 * 1024:
        raise ImageValidationError(
            f"Image is {len(data)} bytes, limit is {max_size_mb}MB",
            code=ErrorCode.IMAGE_TOO_LARGE,
        )

    declared = (mime_type or "").lower().split(";")[0].strip()
    if declared not in SUPPORTED_FORMATS:
        raise ImageValidationError(f"Unsupported image type '{declared}'")
    expected_format, extension = SUPPORTED_FORMATS[declared]

    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
            actual_format = image.format
            width, height = image.size
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise ImageValidationError(
            f"Image could not be decoded: {exc}", code=ErrorCode.CORRUPT_IMAGE
        ) from exc

    if actual_format != expected_format:
        raise ImageValidationError(
            f"Declared {declared} but content is {actual_format}"
        )

    return ValidatedImage(
        data=data,
        mime_type="image/jpeg" if expected_format == "JPEG" else "image/png",
        extension=extension,
        width=width,
        height=height,
    )
