"""Small JPEG previews stored inline on the job row."""

import base64
import io

from PIL import Image
from PIL.Image import Resampling

from shelfscan.logging.logger import Log

# (max width, max height, JPEG quality), tried in order until one fits.
THUMBNAIL_ATTEMPTS = ((400, 600, 70), (300, 450, 50), (250, 350, 40))


def _render(image: Image.Image, max_width: int, max_height: int, quality: int) -> bytes:
    resized = image.copy()
    resized.thumbnail((max_width, max_height), resample=Resampling.LANCZOS)
    if resized.mode not in ("RGB", "L"):
        resized = resized.convert("RGB")
    buffer = io.BytesIO()
    resized.save(buffer, format="JPEG", quality=quality, progressive=True)
    return buffer.getvalue()


def build_thumbnail(data: bytes, max_bytes: int = 500 * 1024) -> str | None:
    """Base64 JPEG thumbnail no larger than ``max_bytes``, or None if one can't be made."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            thumbnail = b""
            for max_width, max_height, quality in THUMBNAIL_ATTEMPTS:
                thumbnail = _render(image, max_width, max_height, quality)
                if len(thumbnail) <= max_bytes:
                    break
    except (OSError, ValueError) as exc:
        Log.warning(f"Thumbnail generation failed: {exc}")
        return None

    if len(thumbnail) > max_bytes:
        Log.warning(f"Thumbnail still {len(thumbnail)} bytes after all attempts, skipping")
        return None
    return base64.b64encode(thumbnail).decode("ascii")
