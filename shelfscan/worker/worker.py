import time

from shelfscan.config.settings import Settings
from shelfscan.database.connection import get_connection
from shelfscan.database.models import DetectionJobRecord
from shelfscan.database.repositories.job_repository import NOTIFY_CHANNEL, JobRepository
from shelfscan.logging.logger import Log
from shelfscan.worker.job_runner import JobRunner


class Worker:
    """Poll loop: claim -> run, or wait for a job notification when idle."""

    def __init__(
        self,
        job_repo: JobRepository,
        job_runner: JobRunner,
        settings: Settings,
    ) -> None:
        self._job_repo = job_repo
        self._job_runner = job_runner
        self._settings = settings

    def run(self, max_jobs: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_jobs is set, stop after processing that many jobs (for testing).
        """
        Log.info("Worker started, polling for detection jobs")
        jobs_done = 0
        try:
            while max_jobs is None or jobs_done < max_jobs:
                job = self._try_claim_job()
                if job:
                    self._job_runner.run(job)
                    jobs_done += 1
                else:
                    Log.debug("No jobs available, waiting")
                    self._wait_for_job()
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")

    def _try_claim_job(self) -> DetectionJobRecord | None:
        """Attempt to claim the next queued job. Gracefully handle DB errors."""
        try:
            with get_connection() as conn:
                return self._job_repo.claim_next_job(conn)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None

    def _wait_for_job(self) -> None:
        """Block until a job is announced on the channel or the poll interval passes.

        Falls back to a plain sleep when the database cannot be reached.
        """
        interval = self._settings.job_poll_interval_seconds
        try:
            with get_connection() as conn:
                conn.execute(f"LISTEN {NOTIFY_CHANNEL}")
                conn.commit()
                try:
                    for notify in conn.notifies(timeout=interval, stop_after=1):
                        Log.debug(f"Woken by new job {notify.payload}")
                finally:
                    conn.execute("UNLISTEN *")
                    conn.commit()
        except Exception as exc:
            Log.warning(f"Cannot listen for jobs, sleeping instead: {exc}")
            time.sleep(interval)
