import httpx
import openai
import psycopg

from shelfscan.config.settings import Settings
from shelfscan.database.models import DetectionJobRecord
from shelfscan.database.repositories.catalog_repository import CatalogRepository
from shelfscan.database.repositories.job_repository import JobRepository
from shelfscan.enrichment.factory import EnricherFactory
from shelfscan.logging.logger import Log
from shelfscan.pipeline.context import PipelineContext, PipelineStep
from shelfscan.pipeline.deadline import Deadline
from shelfscan.pipeline.exceptions import DetectionError, ErrorCode
from shelfscan.pipeline.merger import ResultMerger
from shelfscan.pipeline.steps import (
    DetectBooksStep,
    EnrichStep,
    LoadImageStep,
    OwnershipStep,
    PersistResultStep,
)
from shelfscan.storage.base import BaseImageStore
from shelfscan.storage.factory import ImageStoreFactory
from shelfscan.vision.factory import VisionDetectorFactory


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map any exception raised while processing a job to one error code."""
    if isinstance(exc, DetectionError):
        return exc.code
    if isinstance(exc, psycopg.Error):
        return ErrorCode.DATABASE_ERROR
    if isinstance(exc, openai.RateLimitError):
        return ErrorCode.RATE_LIMITED
    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429:
        return ErrorCode.RATE_LIMITED
    if isinstance(exc, (openai.APITimeoutError, httpx.TimeoutException, TimeoutError)):
        return ErrorCode.TIMEOUT
    if isinstance(exc, (openai.APIConnectionError, httpx.TransportError, ConnectionError)):
        return ErrorCode.SERVICE_UNAVAILABLE
    return ErrorCode.UNEXPECTED_ERROR


class Orchestrator:
    """Drives one job from its stored image to a terminal state.

    Pipeline: load image -> (ocr) -> detect -> enrich -> ownership -> persist.
    Any exception is mapped to an error code and written as a failed job.
    """

    def __init__(
        self,
        steps: list[PipelineStep],
        job_repo: JobRepository,
        budget_seconds: float,
    ) -> None:
        self._steps = steps
        self._job_repo = job_repo
        self._budget_seconds = budget_seconds

    def run(self, job: DetectionJobRecord, deadline: Deadline | None = None) -> PipelineContext:
        context = PipelineContext(
            job=job,
            deadline=deadline or Deadline(self._budget_seconds),
        )
        Log.info(f"[{job.id}] Processing detection job for owner {job.owner_id}")
        try:
            for step in self._steps:
                context = step.run(context)
        except Exception as exc:
            self._fail(job.id, exc)
        return context

    def _fail(self, job_id: str, exc: Exception) -> None:
        code = classify_exception(exc)
        if code is ErrorCode.UNEXPECTED_ERROR:
            Log.exception(f"[{job_id}] Unexpected error: {exc}")
        else:
            Log.error(f"[{job_id}] Failed with {code.value}: {exc}")
        if not self._job_repo.mark_failed(job_id, code, code.message):
            Log.warning(f"[{job_id}] Failure not recorded, job is no longer processing")


def build_orchestrator(
    settings: Settings,
    job_repo: JobRepository | None = None,
    image_store: BaseImageStore | None = None,
) -> Orchestrator:
    """Build an Orchestrator with all required adapters."""
    job_repo = job_repo or JobRepository()
    image_store = image_store or ImageStoreFactory.create(settings)
    detector = VisionDetectorFactory.create(settings)
    merger = ResultMerger(
        EnricherFactory.create(settings),
        max_workers=settings.enrichment_max_workers,
        high_threshold=settings.high_confidence_threshold,
        medium_threshold=settings.medium_confidence_threshold,
    )
    steps: list[PipelineStep] = [
        LoadImageStep(image_store, job_repo),
        DetectBooksStep(detector, job_repo),
        EnrichStep(merger, job_repo),
        OwnershipStep(merger, CatalogRepository(), job_repo),
        PersistResultStep(job_repo),
    ]
    return Orchestrator(steps, job_repo, settings.job_budget_seconds)
