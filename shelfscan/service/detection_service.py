import uuid

from shelfscan.config.settings import Settings
from shelfscan.database.models import DetectionJobRecord, NewJobImage
from shelfscan.database.repositories.job_repository import JobRepository
from shelfscan.logging.logger import Log
from shelfscan.pipeline.exceptions import ErrorCode, JobNotFoundError
from shelfscan.service.image_validation import validate_image
from shelfscan.service.thumbnails import build_thumbnail
from shelfscan.storage.base import BaseImageStore, job_image_path
from shelfscan.worker.dispatcher import BaseDispatcher


class DetectionService:
    """Submission, polling, history and deletion of detection jobs."""

    def __init__(
        self,
        job_repo: JobRepository,
        image_store: BaseImageStore,
        dispatcher: BaseDispatcher,
        settings: Settings,
    ) -> None:
        self._job_repo = job_repo
        self._image_store = image_store
        self._dispatcher = dispatcher
        self._settings = settings

    def submit(
        self,
        owner_id: str,
        data: bytes | None,
        filename: str | None,
        mime_type: str | None,
    ) -> DetectionJobRecord:
        """Validate and store the image, create the job and dispatch it.

        Raises:
            ImageValidationError: before anything is stored.
            ServiceUnavailableError: if the image cannot be stored; no job exists then.
        """
        image = validate_image(data, mime_type, self._settings.max_image_size_mb)
        job_id = str(uuid.uuid4())
        path = job_image_path(owner_id, job_id, image.extension)

        self._image_store.save(path, image.data, image.mime_type)
        try:
            job = self._job_repo.create(
                job_id,
                owner_id,
                NewJobImage(
                    storage_path=path,
                    original_filename=filename or f"upload.{image.extension}",
                    mime_type=image.mime_type,
                    size_bytes=len(image.data),
                    thumbnail=build_thumbnail(image.data, self._settings.thumbnail_max_bytes),
                ),
                ai_model=self._settings.vision_model_name,
            )
        except Exception:
            self._discard_image(path)
            raise
        Log.info(
            f"[{job.id}] Created detection job for owner {owner_id} "
            f"({image.width}x{image.height}, {len(image.data)} bytes)"
        )

        try:
            self._dispatcher.dispatch(job)
        except Exception as exc:
            Log.error(f"[{job.id}] Dispatch failed: {exc}")
            code = ErrorCode.SERVICE_UNAVAILABLE
            self._job_repo.mark_failed(job.id, code, code.message)
            return self._job_repo.get(job.id, owner_id)
        return job

    def get_job(self, job_id: str, owner_id: str) -> DetectionJobRecord:
        return self._job_repo.get(job_id, owner_id)

    def list_jobs(self, owner_id: str, limit: int = 20) -> list[DetectionJobRecord]:
        return self._job_repo.list_for_owner(owner_id, limit)

    def delete_job(self, job_id: str, owner_id: str) -> None:
        """Soft-delete one of the owner's jobs.

        Raises:
            JobNotFoundError: if the owner has no such visible job.
        """
        if not self._job_repo.soft_delete(job_id, owner_id):
            raise JobNotFoundError(f"Job {job_id} not found")
        Log.info(f"[{job_id}] Deleted by owner {owner_id}")

    def _discard_image(self, path: str) -> None:
        try:
            self._image_store.delete(path)
        except Exception as exc:
            Log.warning(f"Failed to remove orphaned image {path}: {exc}")
