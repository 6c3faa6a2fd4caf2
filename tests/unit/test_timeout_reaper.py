from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import psycopg

from shelfscan.database.models import StaleJob
from shelfscan.database.repositories.job_repository import JobRepository
from shelfscan.maintenance.timeout_reaper import ReapReport, TimeoutReaper, timeout_message

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _stale(job_id: str, minutes_ago: int = 15, stage: str = "enriching", progress: int = 50) -> StaleJob:
    return StaleJob(
        id=job_id,
        stage=stage,
        progress=progress,
        created_at=NOW - timedelta(minutes=minutes_ago),
    )


class TestTimeoutMessage:
    def test_names_stage_progress_and_age(self) -> None:
        message = timeout_message(_stale("j1", minutes_ago=12, stage="ocr", progress=20), NOW)
        assert message == "Job timed out at stage 'ocr' (20%) after 12 minutes. Please try again."


class TestTimeoutReaper:
    def setup_method(self) -> None:
        self.job_repo = MagicMock(spec=JobRepository)
        self.reaper = TimeoutReaper(self.job_repo, stale_minutes=10, batch_size=50)

    def test_uses_cutoff_and_batch_size(self) -> None:
        self.job_repo.find_stale_processing.return_value = []

        report = self.reaper.sweep(now=NOW)

        self.job_repo.find_stale_processing.assert_called_once_with(
            NOW - timedelta(minutes=10), 50
        )
        assert report == ReapReport(marked=0, checked=0)
        self.job_repo.mark_timed_out.assert_not_called()

    def test_marks_stale_jobs(self) -> None:
        self.job_repo.find_stale_processing.return_value = [_stale("j1"), _stale("j2")]
        self.job_repo.mark_timed_out.return_value = True

        report = self.reaper.sweep(now=NOW)

        assert report.marked == 2
        assert report.checked == 2
        assert report.errors == []
        first_call = self.job_repo.mark_timed_out.call_args_list[0]
        assert first_call.args[0] == "j1"
        assert "stage 'enriching' (50%) after 15 minutes" in first_call.args[1]

    def test_job_finished_meanwhile_is_not_counted(self) -> None:
        self.job_repo.find_stale_processing.return_value = [_stale("j1")]
        self.job_repo.mark_timed_out.return_value = False

        report = self.reaper.sweep(now=NOW)

        assert report.marked == 0
        assert report.checked == 1

    def test_per_job_error_is_reported_and_sweep_continues(self) -> None:
        self.job_repo.find_stale_processing.return_value = [_stale("j1"), _stale("j2")]
        self.job_repo.mark_timed_out.side_effect = [psycopg.OperationalError("locked"), True]

        report = self.reaper.sweep(now=NOW)

        assert report.marked == 1
        assert len(report.errors) == 1
        assert report.errors[0].startswith("j1: ")

    def test_report_to_dict_omits_empty_errors(self) -> None:
        assert ReapReport(marked=1, checked=2).to_dict() == {"marked": 1, "checked": 2}
        assert ReapReport(errors=["x"]).to_dict()["errors"] == ["x"]
