import base64
import json

from google.api_core import exceptions as gcs_exceptions
from google.cloud import storage

from shelfscan.pipeline.exceptions import ImageNotFoundError, ServiceUnavailableError
from shelfscan.storage.base import BaseImageStore


class GcsImageStore(BaseImageStore):
    """Stores images in a Google Cloud Storage bucket."""

    def __init__(self, bucket: str, credentials_json: str = "", client=None) -> None:
        self.bucket = bucket
        self._credentials_json = credentials_json
        self._client = client

    def save(self, path: str, data: bytes, content_type: str) -> None:
        blob = self._blob(path)
        try:
            blob.upload_from_string(data, content_type=content_type)
        except gcs_exceptions.GoogleAPIError as exc:
            raise ServiceUnavailableError(f"Failed to upload image {path}: {exc}") from exc

    def load(self, path: str) -> bytes:
        blob = self._blob(path)
        try:
            return blob.download_as_bytes()
        except gcs_exceptions.NotFound as exc:
            raise ImageNotFoundError(f"Image not found: {path}") from exc
        except gcs_exceptions.GoogleAPIError as exc:
            raise ServiceUnavailableError(f"Failed to download image {path}: {exc}") from exc

    def delete(self, path: str) -> bool:
        blob = self._blob(path)
        try:
            blob.delete()
        except gcs_exceptions.NotFound:
            return False
        except gcs_exceptions.GoogleAPIError as exc:
            raise ServiceUnavailableError(f"Failed to delete image {path}: {exc}") from exc
        return True

    def _blob(self, path: str):
        return self._get_client().bucket(self.bucket).blob(path)

    def _get_client(self):
        if self._client is not None:
            return self._client
        # Credentials are a base64-encoded service account JSON document.
        if self._credentials_json:
            info = json.loads(base64.b64decode(self._credentials_json))
            self._client = storage.Client.from_service_account_info(info)
        else:
            self._client = storage.Client()
        return self._client
