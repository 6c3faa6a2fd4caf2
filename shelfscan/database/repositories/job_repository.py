import uuid
from datetime import datetime
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from shelfscan.database.connection import get_connection
from shelfscan.database.models import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PROCESSING,
    DetectionJobRecord,
    ExpiredJob,
    NewJobImage,
    StaleJob,
)
from shelfscan.pipeline.exceptions import ErrorCode, JobNotFoundError, JobPersistenceError

_JOB_COLUMNS = """
    id, owner_id, status, stage, progress, result, error, error_code, can_retry,
    image_ref, image_storage_path, image_original_filename, image_mime_type,
    image_size_bytes, image_thumbnail, image_uploaded_at, ai_model_used,
    claimed_at, is_deleted, created_at, updated_at, deleted_at
"""

NOTIFY_CHANNEL = "detection_jobs"


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _row_to_record(row: dict[str, Any]) -> DetectionJobRecord:
    return DetectionJobRecord(
        id=str(row["id"]),
        owner_id=str(row["owner_id"]),
        status=row["status"],
        stage=row["stage"],
        progress=row["progress"],
        result=row["result"],
        error=row["error"],
        error_code=row["error_code"],
        can_retry=row["can_retry"],
        image_ref=row["image_ref"],
        image_storage_path=row["image_storage_path"],
        image_original_filename=row["image_original_filename"],
        image_mime_type=row["image_mime_type"],
        image_size_bytes=row["image_size_bytes"],
        image_thumbnail=row["image_thumbnail"],
        image_uploaded_at=row["image_uploaded_at"],
        ai_model_used=row["ai_model_used"],
        claimed_at=row["claimed_at"],
        is_deleted=row["is_deleted"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        deleted_at=row["deleted_at"],
    )


class JobRepository:
    """Database operations for the detection_jobs table.

    Every write that moves a job forward is conditional on
    ``status = 'processing'`` so a terminal job never changes again, and
    progress writes additionally require the new value to be >= the stored one.
    Those methods return False when the predicate filtered the write out.
    """

    def create(
        self,
        job_id: str,
        owner_id: str,
        image: NewJobImage,
        ai_model: str | None = None,
    ) -> DetectionJobRecord:
        """Insert a new processing job and notify listening workers.

        The insert and the NOTIFY share one transaction, so the row is the
        durable queue entry: a worker either sees the committed job or nothing.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO detection_jobs
                    (id, owner_id, status, stage, progress, image_ref, image_storage_path,
                     image_original_filename, image_mime_type, image_size_bytes,
                     image_thumbnail, image_uploaded_at, ai_model_used)
                    VALUES (%s, %s, %s, 'queued', 0, %s, %s, %s, %s, %s, %s, NOW(), %s)
                    RETURNING {_JOB_COLUMNS}
                    """,
                    (
                        job_id,
                        owner_id,
                        STATUS_PROCESSING,
                        image.storage_path,
                        image.storage_path,
                        image.original_filename,
                        image.mime_type,
                        image.size_bytes,
                        image.thumbnail,
                        ai_model,
                    ),
                )
                row = cur.fetchone()
                cur.execute("SELECT pg_notify(%s, %s)", (NOTIFY_CHANNEL, job_id))
            conn.commit()

        if row is None:
            raise JobPersistenceError(f"Insert of job {job_id} returned no row")
        return _row_to_record(row)

    def claim_next_job(self, conn: psycopg.Connection[Any]) -> DetectionJobRecord | None:
        """Claim the oldest unclaimed processing job using SELECT FOR UPDATE SKIP LOCKED."""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                SELECT {_JOB_COLUMNS}
                FROM detection_jobs
                WHERE status = %s
                  AND claimed_at IS NULL
                  AND NOT is_deleted
                ORDER BY created_at
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """,
                (STATUS_PROCESSING,),
            )
            row = cur.fetchone()

        if row is None:
            conn.commit()
            return None

        conn.execute(
            """
            UPDATE detection_jobs
            SET claimed_at = NOW(), updated_at = NOW()
            WHERE id = %s
            """,
            (row["id"],),
        )
        conn.commit()

        record = _row_to_record(row)
        record.claimed_at = datetime.now().astimezone()
        return record

    def claim(self, job_id: str) -> bool:
        """Claim a specific job for in-process execution."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE detection_jobs
                    SET claimed_at = NOW(), updated_at = NOW()
                    WHERE id = %s AND status = %s AND claimed_at IS NULL
                    """,
                    (job_id, STATUS_PROCESSING),
                )
                applied = cur.rowcount > 0
            conn.commit()
        return applied

    def get(self, job_id: str, owner_id: str) -> DetectionJobRecord:
        """Find a visible job owned by ``owner_id``.

        Raises:
            JobNotFoundError: if the job does not exist, belongs to someone
                else, or was soft-deleted. The three cases are indistinguishable.
        """
        if not _is_uuid(job_id):
            raise JobNotFoundError(f"Job {job_id} not found")
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_JOB_COLUMNS}
                    FROM detection_jobs
                    WHERE id = %s AND owner_id = %s AND NOT is_deleted
                    """,
                    (job_id, owner_id),
                )
                row = cur.fetchone()

        if row is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        return _row_to_record(row)

    def find_by_id(self, job_id: str) -> DetectionJobRecord | None:
        """Find a job by ID regardless of owner. Used by workers and tests."""
        if not _is_uuid(job_id):
            return None
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_JOB_COLUMNS} FROM detection_jobs WHERE id = %s",
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _row_to_record(row)

    def list_for_owner(self, owner_id: str, limit: int = 20) -> list[DetectionJobRecord]:
        """Most recent visible jobs of one owner, newest first."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_JOB_COLUMNS}
                    FROM detection_jobs
                    WHERE owner_id = %s AND NOT is_deleted
                    ORDER BY created_at DESC
                    LIMIT %s
                    """,
                    (owner_id, limit),
                )
                rows = cur.fetchall()
        return [_row_to_record(row) for row in rows]

    def update_progress(self, job_id: str, stage: str, progress: int) -> bool:
        """Record a progress checkpoint. Never moves progress backwards."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE detection_jobs
                    SET stage = %s, progress = %s, updated_at = NOW()
                    WHERE id = %s AND status = %s AND progress <= %s
                    """,
                    (stage, progress, job_id, STATUS_PROCESSING, progress),
                )
                applied = cur.rowcount > 0
            conn.commit()
        return applied

    def mark_completed(self, job_id: str, result: dict[str, Any]) -> bool:
        """Persist the result and flip the job to completed."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE detection_jobs
                    SET status = %s, stage = 'completed', progress = 100,
                        result = %s, error = NULL, error_code = NULL,
                        can_retry = NULL, image_ref = NULL, updated_at = NOW()
                    WHERE id = %s AND status = %s
                    """,
                    (STATUS_COMPLETED, Jsonb(result), job_id, STATUS_PROCESSING),
                )
                applied = cur.rowcount > 0
            conn.commit()
        return applied

    def mark_failed(self, job_id: str, code: ErrorCode, message: str) -> bool:
        """Flip a processing job to failed with a taxonomy code."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE detection_jobs
                    SET status = %s, stage = 'failed', result = NULL,
                        error = %s, error_code = %s, can_retry = %s,
                        updated_at = NOW()
                    WHERE id = %s AND status = %s
                    """,
                    (
                        STATUS_FAILED,
                        message,
                        code.value,
                        code.can_retry,
                        job_id,
                        STATUS_PROCESSING,
                    ),
                )
                applied = cur.rowcount > 0
            conn.commit()
        return applied

    def find_stale_processing(self, cutoff: datetime, limit: int) -> list[StaleJob]:
        """Processing jobs created before ``cutoff``, oldest first."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, stage, progress, created_at
                    FROM detection_jobs
                    WHERE status = %s AND created_at < %s
                    ORDER BY created_at
                    LIMIT %s
                    """,
                    (STATUS_PROCESSING, cutoff, limit),
                )
                rows = cur.fetchall()
        return [
            StaleJob(
                id=str(row["id"]),
                stage=row["stage"],
                progress=row["progress"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    def mark_timed_out(self, job_id: str, message: str) -> bool:
        """Fail a stuck job with TIMEOUT and reset its progress."""
        code = ErrorCode.TIMEOUT
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE detection_jobs
                    SET status = %s, stage = 'failed_timeout', progress = 0,
                        error = %s, error_code = %s, can_retry = %s,
                        updated_at = NOW()
                    WHERE id = %s AND status = %s
                    """,
                    (
                        STATUS_FAILED,
                        message,
                        code.value,
                        code.can_retry,
                        job_id,
                        STATUS_PROCESSING,
                    ),
                )
                applied = cur.rowcount > 0
            conn.commit()
        return applied

    def find_expired(
        self,
        completed_before: datetime,
        deleted_before: datetime,
        limit: int,
    ) -> list[ExpiredJob]:
        """Jobs whose stored image is past retention.

        Completed jobs expire ``completed_before`` their upload; jobs the
        owner already soft-deleted expire ``deleted_before`` their deletion.
        Rows the cleaner has handled have no storage path and never match again.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, owner_id, image_storage_path
                    FROM detection_jobs
                    WHERE image_storage_path IS NOT NULL
                      AND (
                        (status = %s AND NOT is_deleted
                         AND COALESCE(image_uploaded_at, created_at) < %s)
                        OR (is_deleted AND deleted_at < %s)
                      )
                    ORDER BY created_at
                    LIMIT %s
                    """,
                    (STATUS_COMPLETED, completed_before, deleted_before, limit),
                )
                rows = cur.fetchall()
        return [
            ExpiredJob(
                id=str(row["id"]),
                owner_id=str(row["owner_id"]),
                image_storage_path=row["image_storage_path"],
            )
            for row in rows
        ]

    def soft_delete(self, job_id: str, owner_id: str | None = None) -> bool:
        """Hide a job from polling.

        With ``owner_id`` the delete is scoped to that owner. The storage path
        is kept so the retention cleaner can remove the blob later.
        """
        if not _is_uuid(job_id):
            return False
        query = """
            UPDATE detection_jobs
            SET is_deleted = true, deleted_at = NOW(), image_ref = NULL,
                image_thumbnail = NULL, updated_at = NOW()
            WHERE id = %s AND NOT is_deleted
        """
        params: tuple[Any, ...] = (job_id,)
        if owner_id is not None:
            query += " AND owner_id = %s"
            params = (job_id, owner_id)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                applied = cur.rowcount > 0
            conn.commit()
        return applied

    def purge_image_references(self, job_id: str) -> bool:
        """Soft-delete a job and clear every reference to its stored image."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE detection_jobs
                    SET is_deleted = true,
                        deleted_at = COALESCE(deleted_at, NOW()),
                        image_ref = NULL, image_storage_path = NULL,
                        image_thumbnail = NULL, updated_at = NOW()
                    WHERE id = %s
                    """,
                    (job_id,),
                )
                applied = cur.rowcount > 0
            conn.commit()
        return applied
