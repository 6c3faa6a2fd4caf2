from dataclasses import dataclass
from datetime import datetime
from typing import Any

STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_FAILED})


@dataclass
class DetectionJobRecord:
    """Represents a row from the detection_jobs table."""

    id: str
    owner_id: str
    status: str
    stage: str
    progress: int
    result: dict[str, Any] | None = None
    error: str | None = None
    error_code: str | None = None
    can_retry: bool | None = None
    image_ref: str | None = None
    image_storage_path: str | None = None
    image_original_filename: str | None = None
    image_mime_type: str | None = None
    image_size_bytes: int | None = None
    image_thumbnail: str | None = None
    image_uploaded_at: datetime | None = None
    ai_model_used: str | None = None
    claimed_at: datetime | None = None
    is_deleted: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass(frozen=True)
class NewJobImage:
    """Image metadata captured at submission time."""

    storage_path: str
    original_filename: str
    mime_type: str
    size_bytes: int
    thumbnail: str | None = None


@dataclass(frozen=True)
class StaleJob:
    """Subset of a processing job looked at by the timeout reaper."""

    id: str
    stage: str
    progress: int
    created_at: datetime


@dataclass(frozen=True)
class ExpiredJob:
    """Subset of a completed job looked at by the retention cleaner."""

    id: str
    owner_id: str
    image_storage_path: str | None
