from abc import ABC, abstractmethod


def job_image_path(owner_id: str, job_id: str, extension: str) -> str:
    """Object path of a job's source image: ``{owner_id}/{job_id}.{extension}``."""
    return f"{owner_id}/{job_id}.{extension.lstrip('.')}"


class BaseImageStore(ABC):
    """Contract for blob stores holding uploaded shelf images."""

    bucket: str

    @abstractmethod
    def save(self, path: str, data: bytes, content_type: str) -> None:
        """Store ``data`` at ``path``, overwriting any existing object.

        Raises:
            ServiceUnavailableError: if the store cannot be written.
        """

    @abstractmethod
    def load(self, path: str) -> bytes:
        """Read the object at ``path``.

        Raises:
            ImageNotFoundError: if nothing is stored at ``path``.
            ServiceUnavailableError: if the store cannot be reached.
        """

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Remove the object at ``path``.

        Returns:
            True if an object was removed, False if it was already gone.

        Raises:
            ServiceUnavailableError: if the store cannot be reached.
        """
