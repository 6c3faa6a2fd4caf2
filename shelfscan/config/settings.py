from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "shelfscan"
    db_username: str = "shelfscan"
    db_password: str = "secret"

    # HTTP server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Worker / dispatch
    dispatch_mode: str = "queue"
    job_poll_interval_seconds: int = 5
    local_dispatch_max_workers: int = 2
    job_budget_seconds: float = 145.0

    # Image intake
    max_image_size_mb: int = 10
    thumbnail_max_bytes: int = 500 * 1024

    # Blob storage
    storage_backend: str = "local"
    storage_local_root: str = "/app/files/detection-job-images"
    storage_bucket: str = "detection-job-images"
    storage_gcs_credentials_json: str = ""

    # Vision detection
    vision_strategy: str = "ai_only"
    vision_provider: str = "openai"
    vision_api_key: str = ""
    vision_model_name: str = "gpt-4o-mini"
    vision_base_url: str = ""
    vision_timeout_seconds: float = 120.0
    ocr_api_key: str = ""
    ocr_endpoint: str = "https://vision.googleapis.com/v1/images:annotate"
    ocr_timeout_seconds: float = 45.0
    ocr_group_threshold_px: int = 100

    # Metadata enrichment
    enrichment_provider: str = "simania"
    enrichment_base_url: str = "https://simania.co.il"
    enrichment_timeout_seconds: float = 10.0
    enrichment_max_results: int = 5
    enrichment_max_workers: int = 8
    high_confidence_threshold: int = 70
    medium_confidence_threshold: int = 40

    # Maintenance sweeps
    cron_secret: str = ""
    stale_job_minutes: int = 10
    reaper_batch_size: int = 50
    retention_days: int = 7
    deleted_retention_days: int = 1
    cleanup_batch_size: int = 100

    # Identity provider
    auth_base_url: str = "http://localhost:54321/auth/v1"
    auth_api_key: str = ""
    auth_timeout_seconds: float = 5.0
