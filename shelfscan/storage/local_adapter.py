from pathlib import Path

from shelfscan.pipeline.exceptions import ImageNotFoundError, ServiceUnavailableError
from shelfscan.storage.base import BaseImageStore


class LocalImageStore(BaseImageStore):
    """Stores images on the local filesystem under ``root``."""

    def __init__(self, root: Path, bucket: str = "local") -> None:
        self._root = root
        self.bucket = bucket

    def save(self, path: str, data: bytes, content_type: str) -> None:
        _ = content_type
        target = self._resolve_path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise ServiceUnavailableError(f"Failed to store image {path}: {exc}") from exc

    def load(self, path: str) -> bytes:
        target = self._resolve_path(path)
        if not target.exists():
            raise ImageNotFoundError(f"Image not found: {path}")
        return target.read_bytes()

    def delete(self, path: str) -> bool:
        target = self._resolve_path(path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise ServiceUnavailableError(f"Failed to delete image {path}: {exc}") from exc
        return True

    def _resolve_path(self, path: str) -> Path:
        target = (self._root / path).resolve()
        if not target.is_relative_to(self._root.resolve()):
            raise ValueError(f"Path escapes storage root: {path}")
        return target
