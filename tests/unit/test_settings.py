import pytest
from pydantic import ValidationError

from shelfscan.config.settings import Settings


class TestSettingsDefaults:
    def test_default_app_env(self) -> None:
        s = Settings()
        assert s.app_env == "dev"

    def test_default_db_port(self) -> None:
        s = Settings()
        assert s.db_port == 5432

    def test_default_job_poll_interval(self) -> None:
        s = Settings()
        assert s.job_poll_interval_seconds == 5

    def test_default_job_budget(self) -> None:
        s = Settings()
        assert s.job_budget_seconds == 145.0

    def test_default_vision_strategy(self) -> None:
        s = Settings()
        assert s.vision_strategy == "ai_only"

    def test_default_confidence_thresholds(self) -> None:
        s = Settings()
        assert s.high_confidence_threshold == 70
        assert s.medium_confidence_threshold == 40

    def test_default_maintenance_windows(self) -> None:
        s = Settings()
        assert s.stale_job_minutes == 10
        assert s.reaper_batch_size == 50
        assert s.retention_days == 7
        assert s.cleanup_batch_size == 100

    def test_default_ocr_group_threshold(self) -> None:
        s = Settings()
        assert s.ocr_group_threshold_px == 100


class TestSettingsFromEnv:
    def test_loads_app_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_ENV", "production")
        s = Settings()
        assert s.app_env == "production"

    def test_loads_db_host(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_HOST", "db.example.com")
        s = Settings()
        assert s.db_host == "db.example.com"

    def test_loads_cron_secret(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CRON_SECRET", "s3cret")
        s = Settings()
        assert s.cron_secret == "s3cret"

    def test_loads_group_threshold(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OCR_GROUP_THRESHOLD_PX", "60")
        s = Settings()
        assert s.ocr_group_threshold_px == 60


class TestSettingsValidation:
    def test_invalid_db_port_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_PORT", "not_a_number")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_budget_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JOB_BUDGET_SECONDS", "forever")
        with pytest.raises(ValidationError):
            Settings()
