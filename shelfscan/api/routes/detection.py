from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from shelfscan.api.container import ServiceContainer
from shelfscan.api.dependencies import get_container, get_current_owner
from shelfscan.api.schemas import JobCreatedResponse, JobListResponse, JobStatusResponse
from shelfscan.pipeline.exceptions import JobNotFoundError

router = APIRouter(prefix="/api/books", tags=["detection"])


@router.post("/detect-from-image", response_model=JobCreatedResponse)
def detect_from_image(
    image: UploadFile | None = File(default=None),
    owner_id: str = Depends(get_current_owner),
    container: ServiceContainer = Depends(get_container),
) -> JobCreatedResponse:
    data = image.file.read() if image is not None else None
    job = container.detection_service.submit(
        owner_id,
        data,
        image.filename if image is not None else None,
        image.content_type if image is not None else None,
    )
    return JobCreatedResponse(jobId=job.id, status=job.status, progress=job.progress)


@router.get("/detect-job/{job_id}", response_model=JobStatusResponse)
def get_detection_job(
    job_id: str,
    owner_id: str = Depends(get_current_owner),
    container: ServiceContainer = Depends(get_container),
) -> JobStatusResponse:
    try:
        job = container.detection_service.get_job(job_id, owner_id)
    except JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Job not found") from exc
    return JobStatusResponse.from_record(job)


@router.delete("/detect-job/{job_id}", status_code=204)
def delete_detection_job(
    job_id: str,
    owner_id: str = Depends(get_current_owner),
    container: ServiceContainer = Depends(get_container),
) -> None:
    try:
        container.detection_service.delete_job(job_id, owner_id)
    except JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Job not found") from exc


@router.get("/detect-jobs", response_model=JobListResponse)
def list_detection_jobs(
    limit: int = Query(default=20, ge=1, le=100),
    owner_id: str = Depends(get_current_owner),
    container: ServiceContainer = Depends(get_container),
) -> JobListResponse:
    jobs = container.detection_service.list_jobs(owner_id, limit)
    return JobListResponse(
        jobs=[JobStatusResponse.from_record(job, include_result=False) for job in jobs],
        count=len(jobs),
    )
