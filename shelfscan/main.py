from shelfscan.config.settings import Settings
from shelfscan.database.connection import close_pool, init_pool
from shelfscan.database.repositories.job_repository import JobRepository
from shelfscan.logging.logger import Log
from shelfscan.pipeline.orchestrator import build_orchestrator
from shelfscan.worker.job_runner import JobRunner
from shelfscan.worker.worker import Worker


def main() -> None:
    """Entry point: initialize pool -> build dependencies -> start worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        job_repo = JobRepository()
        orchestrator = build_orchestrator(settings, job_repo=job_repo)
        worker = Worker(job_repo, JobRunner(orchestrator), settings)
        worker.run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
