from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from shelfscan.database.models import ExpiredJob
from shelfscan.database.repositories.audit_log_repository import AuditLogRepository
from shelfscan.database.repositories.job_repository import JobRepository
from shelfscan.logging.logger import Log
from shelfscan.storage.base import BaseImageStore

CLEANUP_ACTOR = "retention_cleaner"
CLEANUP_REASON = "retention_policy_cleanup"


@dataclass
class CleanupReport:
    deleted: int = 0
    processed: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        body: dict[str, object] = {"deleted": self.deleted, "processed": self.processed}
        if self.errors:
            body["errors"] = self.errors
        return body


class RetentionCleaner:
    """Removes source images of jobs past the retention window.

    A storage failure is reported but does not stop the row from being
    soft-deleted. An object that is already gone counts as deleted.
    """

    def __init__(
        self,
        job_repo: JobRepository,
        audit_repo: AuditLogRepository,
        image_store: BaseImageStore,
        *,
        retention_days: int = 7,
        deleted_retention_days: int = 1,
        batch_size: int = 100,
    ) -> None:
        self._job_repo = job_repo
        self._audit_repo = audit_repo
        self._image_store = image_store
        self._retention_days = retention_days
        self._deleted_retention_days = deleted_retention_days
        self._batch_size = batch_size

    def sweep(self, now: datetime | None = None) -> CleanupReport:
        now = now or datetime.now(timezone.utc)
        expired = self._job_repo.find_expired(
            completed_before=now - timedelta(days=self._retention_days),
            deleted_before=now - timedelta(days=self._deleted_retention_days),
            limit=self._batch_size,
        )
        report = CleanupReport()
        for job in expired:
            report.processed += 1
            try:
                self._clean(job, report)
            except Exception as exc:
                Log.error(f"[{job.id}] Cleanup failed: {exc}")
                report.errors.append(f"{job.id}: {exc}")

        Log.info(
            f"Retention sweep: cleaned {report.deleted} of {report.processed} jobs, "
            f"{len(report.errors)} errors"
        )
        return report

    def _clean(self, job: ExpiredJob, report: CleanupReport) -> None:
        path = job.image_storage_path
        if path:
            try:
                if not self._image_store.delete(path):
                    Log.info(f"[{job.id}] Image {path} already gone")
            except Exception as exc:
                Log.error(f"[{job.id}] Failed to delete image {path}: {exc}")
                report.errors.append(f"{job.id}: storage: {exc}")

        self._job_repo.purge_image_references(job.id)
        if path:
            self._audit_repo.record(
                bucket_id=self._image_store.bucket,
                object_path=path,
                operation="delete",
                user_id=job.owner_id,
                actor=CLEANUP_ACTOR,
                reason=CLEANUP_REASON,
            )
        report.deleted += 1
