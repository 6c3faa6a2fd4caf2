import threading
from unittest.mock import MagicMock

import pytest

from shelfscan.worker.dispatcher import LocalDispatcher, QueueDispatcher
from tests.conftest import make_job


class TestQueueDispatcher:
    def test_dispatch_is_a_noop(self) -> None:
        QueueDispatcher().dispatch(make_job())


class TestLocalDispatcher:
    def test_claims_then_runs_in_background(self) -> None:
        done = threading.Event()
        orchestrator = MagicMock()
        orchestrator.run.side_effect = lambda job: done.set()
        job_repo = MagicMock()
        job_repo.claim.return_value = True
        dispatcher = LocalDispatcher(orchestrator, job_repo, max_workers=1)
        job = make_job()

        try:
            dispatcher.dispatch(job)
            assert done.wait(5)
        finally:
            dispatcher.shutdown()

        job_repo.claim.assert_called_once_with(job.id)
        orchestrator.run.assert_called_once_with(job)

    def test_already_claimed_raises(self) -> None:
        orchestrator = MagicMock()
        job_repo = MagicMock()
        job_repo.claim.return_value = False
        dispatcher = LocalDispatcher(orchestrator, job_repo)

        try:
            with pytest.raises(RuntimeError, match="already claimed"):
                dispatcher.dispatch(make_job())
        finally:
            dispatcher.shutdown()

        orchestrator.run.assert_not_called()

    def test_crash_in_background_is_contained(self) -> None:
        finished = threading.Event()
        orchestrator = MagicMock()

        def crash(job: object) -> None:
            finished.set()
            raise RuntimeError("boom")

        orchestrator.run.side_effect = crash
        job_repo = MagicMock()
        job_repo.claim.return_value = True
        dispatcher = LocalDispatcher(orchestrator, job_repo, max_workers=1)

        try:
            dispatcher.dispatch(make_job())
            assert finished.wait(5)
        finally:
            dispatcher.shutdown()
