from shelfscan.database.repositories.catalog_repository import CatalogRepository
from shelfscan.database.repositories.job_repository import JobRepository
from shelfscan.logging.logger import Log
from shelfscan.pipeline.context import PipelineContext, PipelineStep
from shelfscan.pipeline.exceptions import ImageNotFoundError, NoBooksDetectedError
from shelfscan.pipeline.merger import ResultMerger
from shelfscan.pipeline.models import DetectionResult
from shelfscan.storage.base import BaseImageStore
from shelfscan.vision.base import BaseBookDetector

PROGRESS_ACCEPTED = 10
PROGRESS_OCR_STARTED = 20
PROGRESS_DETECTED = 50
PROGRESS_ENRICHED = 80
PROGRESS_OWNERSHIP = 90


def checkpoint(job_repo: JobRepository, context: PipelineContext, stage: str, progress: int) -> None:
    """Check the budget, then record progress."""
    context.deadline.check(stage)
    context.progress = max(context.progress, progress)
    if not job_repo.update_progress(context.job_id, stage, progress):
        Log.warning(f"[{context.job_id}] Progress {progress} ({stage}) not recorded")


class LoadImageStep(PipelineStep):
    stage = "accepted"

    def __init__(self, image_store: BaseImageStore, job_repo: JobRepository) -> None:
        self._image_store = image_store
        self._job_repo = job_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        image_ref = context.job.image_ref
        if not image_ref:
            raise ImageNotFoundError(f"Job {context.job_id} has no image reference")
        context.image_bytes = self._image_store.load(image_ref)
        context.mime_type = context.job.image_mime_type or "image/jpeg"
        Log.info(f"[{context.job_id}] Loaded {len(context.image_bytes)} bytes from {image_ref}")
        checkpoint(self._job_repo, context, self.stage, PROGRESS_ACCEPTED)
        return context


class DetectBooksStep(PipelineStep):
    stage = "detecting"

    def __init__(self, detector: BaseBookDetector, job_repo: JobRepository) -> None:
        self._detector = detector
        self._job_repo = job_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        if self._detector.uses_ocr:
            checkpoint(self._job_repo, context, "ocr", PROGRESS_OCR_STARTED)
        context.guesses = self._detector.detect(
            context.image_bytes,
            context.mime_type,
            context.deadline,
            on_stage=lambda stage: checkpoint(self._job_repo, context, stage, context.progress),
        )
        Log.info(f"[{context.job_id}] Detected {len(context.guesses)} books")
        if not context.guesses:
            raise NoBooksDetectedError()
        checkpoint(self._job_repo, context, "enriching", PROGRESS_DETECTED)
        return context


class EnrichStep(PipelineStep):
    stage = "enriching"

    def __init__(self, merger: ResultMerger, job_repo: JobRepository) -> None:
        self._merger = merger
        self._job_repo = job_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        enriched = self._merger.enrich_all(context.guesses, context.deadline)
        context.candidates = self._merger.deduplicate(enriched)
        Log.info(
            f"[{context.job_id}] Enriched {len(enriched)} books, "
            f"{len(context.candidates)} unique"
        )
        checkpoint(self._job_repo, context, "ownership", PROGRESS_ENRICHED)
        return context


class OwnershipStep(PipelineStep):
    """Tag candidates the household already owns. Lookup failures tag none."""

    stage = "ownership"

    def __init__(
        self,
        merger: ResultMerger,
        catalog_repo: CatalogRepository,
        job_repo: JobRepository,
    ) -> None:
        self._merger = merger
        self._catalog_repo = catalog_repo
        self._job_repo = job_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        try:
            context.owned_keys = self._catalog_repo.owned_book_keys(context.job.owner_id)
        except Exception as exc:
            Log.warning(
                f"[{context.job_id}] Ownership check failed, continuing without it: {exc}"
            )
            context.owned_keys = set()
        owned = self._merger.apply_ownership(context.candidates, context.owned_keys)
        context.candidates = self._merger.rank(context.candidates)
        context.result = DetectionResult(books=context.candidates)
        Log.info(f"[{context.job_id}] Marked {owned} books as already owned")
        checkpoint(self._job_repo, context, "saving", PROGRESS_OWNERSHIP)
        return context


class PersistResultStep(PipelineStep):
    stage = "completed"

    def __init__(self, job_repo: JobRepository) -> None:
        self._job_repo = job_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.result is None:
            raise ValueError("PipelineContext.result must be set before persist")
        context.deadline.check("saving")
        if self._job_repo.mark_completed(context.job_id, context.result.to_dict()):
            Log.info(f"[{context.job_id}] Completed with {context.result.count} books")
        else:
            Log.warning(f"[{context.job_id}] Result discarded, job is no longer processing")
        return context
