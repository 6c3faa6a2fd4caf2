from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor

from shelfscan.database.models import DetectionJobRecord
from shelfscan.database.repositories.job_repository import JobRepository
from shelfscan.logging.logger import Log
from shelfscan.pipeline.orchestrator import Orchestrator


class BaseDispatcher(ABC):
    """Hands a freshly created job to whatever will process it."""

    @abstractmethod
    def dispatch(self, job: DetectionJobRecord) -> None:
        """Raises if the job cannot be handed off."""

    def shutdown(self) -> None:
        pass


class QueueDispatcher(BaseDispatcher):
    """The committed job row is the queue entry; worker processes claim it."""

    def dispatch(self, job: DetectionJobRecord) -> None:
        Log.debug(f"[{job.id}] Queued for worker pickup")


class LocalDispatcher(BaseDispatcher):
    """Runs jobs on a thread pool inside the API process."""

    def __init__(
        self,
        orchestrator: Orchestrator,
        job_repo: JobRepository,
        max_workers: int = 2,
    ) -> None:
        self._orchestrator = orchestrator
        self._job_repo = job_repo
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="detect"
        )

    def dispatch(self, job: DetectionJobRecord) -> None:
        if not self._job_repo.claim(job.id):
            raise RuntimeError(f"Job {job.id} was already claimed")
        self._executor.submit(self._run, job)
        Log.info(f"[{job.id}] Dispatched to local executor")

    def _run(self, job: DetectionJobRecord) -> None:
        try:
            self._orchestrator.run(job)
        except Exception as exc:
            Log.exception(f"[{job.id}] Local detection crashed: {exc}")

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
