from datetime import datetime
from typing import Any

from pydantic import BaseModel

from shelfscan.database.models import DetectionJobRecord


class JobCreatedResponse(BaseModel):
    jobId: str
    status: str
    progress: int


class JobImage(BaseModel):
    originalFilename: str | None = None
    mimeType: str | None = None
    sizeBytes: int | None = None
    uploadedAt: datetime | None = None
    thumbnail: str | None = None


class JobStatusResponse(BaseModel):
    id: str
    status: str
    progress: int
    stage: str
    result: dict[str, Any] | None = None
    error: str | None = None
    errorCode: str | None = None
    canRetry: bool | None = None
    aiModel: str | None = None
    createdAt: datetime | None = None
    updatedAt: datetime | None = None
    image: JobImage

    @classmethod
    def from_record(cls, job: DetectionJobRecord, include_result: bool = True) -> "JobStatusResponse":
        return cls(
            id=job.id,
            status=job.status,
            progress=job.progress,
            stage=job.stage,
            result=job.result if include_result else None,
            error=job.error,
            errorCode=job.error_code,
            canRetry=job.can_retry,
            aiModel=job.ai_model_used,
            createdAt=job.created_at,
            updatedAt=job.updated_at,
            image=JobImage(
                originalFilename=job.image_original_filename,
                mimeType=job.image_mime_type,
                sizeBytes=job.image_size_bytes,
                uploadedAt=job.image_uploaded_at,
                thumbnail=job.image_thumbnail,
            ),
        )


class JobListResponse(BaseModel):
    jobs: list[JobStatusResponse]
    count: int


class ReapResponse(BaseModel):
    marked: int
    checked: int
    errors: list[str] | None = None


class CleanupResponse(BaseModel):
    deleted: int
    processed: int
    errors: list[str] | None = None
