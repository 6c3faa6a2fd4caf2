from dataclasses import dataclass

from shelfscan.api.identity import IdentityClient
from shelfscan.config.settings import Settings
from shelfscan.database.repositories.audit_log_repository import AuditLogRepository
from shelfscan.database.repositories.job_repository import JobRepository
from shelfscan.maintenance.retention_cleaner import RetentionCleaner
from shelfscan.maintenance.timeout_reaper import TimeoutReaper
from shelfscan.pipeline.orchestrator import build_orchestrator
from shelfscan.service.detection_service import DetectionService
from shelfscan.storage.factory import ImageStoreFactory
from shelfscan.worker.dispatcher import BaseDispatcher, LocalDispatcher, QueueDispatcher


@dataclass
class ServiceContainer:
    settings: Settings
    detection_service: DetectionService
    reaper: TimeoutReaper
    cleaner: RetentionCleaner
    identity: IdentityClient
    dispatcher: BaseDispatcher


def build_container(settings: Settings) -> ServiceContainer:
    """Wire every collaborator the HTTP surface needs."""
    job_repo = JobRepository()
    image_store = ImageStoreFactory.create(settings)

    dispatcher: BaseDispatcher
    mode = settings.dispatch_mode.lower()
    if mode == "local":
        dispatcher = LocalDispatcher(
            build_orchestrator(settings, job_repo=job_repo, image_store=image_store),
            job_repo,
            max_workers=settings.local_dispatch_max_workers,
        )
    elif mode == "queue":
        dispatcher = QueueDispatcher()
    else:
        raise ValueError(f"Unknown dispatch mode '{mode}'. Choose from: ['queue', 'local']")

    return ServiceContainer(
        settings=settings,
        detection_service=DetectionService(job_repo, image_store, dispatcher, settings),
        reaper=TimeoutReaper(
            job_repo,
            stale_minutes=settings.stale_job_minutes,
            batch_size=settings.reaper_batch_size,
        ),
        cleaner=RetentionCleaner(
            job_repo,
            AuditLogRepository(),
            image_store,
            retention_days=settings.retention_days,
            deleted_retention_days=settings.deleted_retention_days,
            batch_size=settings.cleanup_batch_size,
        ),
        identity=IdentityClient(
            base_url=settings.auth_base_url,
            api_key=settings.auth_api_key,
            timeout_seconds=settings.auth_timeout_seconds,
        ),
        dispatcher=dispatcher,
    )
