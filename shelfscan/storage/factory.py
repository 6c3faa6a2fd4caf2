from pathlib import Path

from shelfscan.config.settings import Settings
from shelfscan.storage.base import BaseImageStore
from shelfscan.storage.gcs_adapter import GcsImageStore
from shelfscan.storage.local_adapter import LocalImageStore


class ImageStoreFactory:
    """Creates the configured image store."""

    BACKENDS = ("local", "gcs")

    @classmethod
    def create(cls, settings: Settings) -> BaseImageStore:
        backend = settings.storage_backend.lower()
        if backend == "local":
            return LocalImageStore(
                root=Path(settings.storage_local_root),
                bucket=settings.storage_bucket,
            )
        if backend == "gcs":
            return GcsImageStore(
                bucket=settings.storage_bucket,
                credentials_json=settings.storage_gcs_credentials_json,
            )
        raise ValueError(
            f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
