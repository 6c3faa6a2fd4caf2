from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from shelfscan.database.models import StaleJob
from shelfscan.database.repositories.job_repository import JobRepository
from shelfscan.logging.logger import Log


@dataclass
class ReapReport:
    marked: int = 0
    checked: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        body: dict[str, object] = {"marked": self.marked, "checked": self.checked}
        if self.errors:
            body["errors"] = self.errors
        return body


def timeout_message(job: StaleJob, now: datetime) -> str:
    minutes = int((now - job.created_at).total_seconds() // 60)
    return (
        f"Job timed out at stage '{job.stage}' ({job.progress}%) "
        f"after {minutes} minutes. Please try again."
    )


class TimeoutReaper:
    """Fails processing jobs that have been stuck longer than the stale window."""

    def __init__(
        self,
        job_repo: JobRepository,
        *,
        stale_minutes: int = 10,
        batch_size: int = 50,
    ) -> None:
        self._job_repo = job_repo
        self._stale_minutes = stale_minutes
        self._batch_size = batch_size

    def sweep(self, now: datetime | None = None) -> ReapReport:
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(minutes=self._stale_minutes)
        stale = self._job_repo.find_stale_processing(cutoff, self._batch_size)
        report = ReapReport(checked=len(stale))
        if not stale:
            Log.info("Timeout sweep: no stuck jobs")
            return report

        for job in stale:
            try:
                if self._job_repo.mark_timed_out(job.id, timeout_message(job, now)):
                    report.marked += 1
                    Log.warning(f"[{job.id}] Marked as timed out at stage '{job.stage}'")
            except Exception as exc:
                Log.error(f"[{job.id}] Failed to mark as timed out: {exc}")
                report.errors.append(f"{job.id}: {exc}")

        Log.info(
            f"Timeout sweep: marked {report.marked} of {report.checked} stuck jobs, "
            f"{len(report.errors)} errors"
        )
        return report
