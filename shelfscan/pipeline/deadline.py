import time
from collections.abc import Callable

from shelfscan.pipeline.exceptions import DetectionTimeoutError


class Deadline:
    """Wall-clock budget shared by every step of one job.

    Steps call ``check()`` at checkpoints and ``cap()`` to bound the timeout
    of each outbound call by whatever budget is left.
    """

    def __init__(
        self,
        budget_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._budget_seconds = budget_seconds
        self._expires_at = clock() + budget_seconds

    @property
    def budget_seconds(self) -> float:
        return self._budget_seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, stage: str = "") -> None:
        """Raise DetectionTimeoutError once the budget is spent."""
        if self.expired:
            suffix = f" during {stage}" if stage else ""
            raise DetectionTimeoutError(
                f"Job exceeded its {self._budget_seconds:.0f}s budget{suffix}"
            )

    def cap(self, timeout_seconds: float, stage: str = "") -> float:
        """Return ``timeout_seconds`` bounded by the remaining budget."""
        self.check(stage)
        return min(timeout_seconds, self.remaining())
