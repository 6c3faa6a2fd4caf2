from fastapi import APIRouter, Depends

from shelfscan.api.container import ServiceContainer
from shelfscan.api.dependencies import get_container, require_cron_secret
from shelfscan.api.schemas import CleanupResponse, ReapResponse

router = APIRouter(
    prefix="/api/cron",
    tags=["maintenance"],
    dependencies=[Depends(require_cron_secret)],
)


@router.api_route(
    "/check-job-timeouts",
    methods=["GET", "POST"],
    response_model=ReapResponse,
    response_model_exclude_none=True,
)
def check_job_timeouts(container: ServiceContainer = Depends(get_container)) -> ReapResponse:
    report = container.reaper.sweep()
    return ReapResponse(**report.to_dict())


@router.api_route(
    "/cleanup-detection-jobs",
    methods=["GET", "POST"],
    response_model=CleanupResponse,
    response_model_exclude_none=True,
)
def cleanup_detection_jobs(container: ServiceContainer = Depends(get_container)) -> CleanupResponse:
    report = container.cleaner.sweep()
    return CleanupResponse(**report.to_dict())
