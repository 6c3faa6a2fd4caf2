from shelfscan.database.models import DetectionJobRecord
from shelfscan.logging.logger import Log
from shelfscan.pipeline.orchestrator import Orchestrator


class JobRunner:
    """Run one claimed job and keep the worker alive whatever happens."""

    def __init__(self, orchestrator: Orchestrator) -> None:
        self._orchestrator = orchestrator

    def run(self, job: DetectionJobRecord) -> None:
        """Execute a single job with error handling."""
        Log.info(f"[{job.id}] Running job (stage {job.stage}, progress {job.progress})")
        try:
            self._orchestrator.run(job)
        except Exception as exc:
            # Reached only when the failure itself could not be recorded;
            # the timeout reaper will close the job.
            Log.exception(f"[{job.id}] Job crashed and could not be marked failed: {exc}")
