from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from shelfscan.database.models import DetectionJobRecord
from shelfscan.pipeline.deadline import Deadline
from shelfscan.pipeline.models import BookCandidate, DetectionResult
from shelfscan.vision.models import RawGuess


@dataclass(slots=True)
class PipelineContext:
    job: DetectionJobRecord
    deadline: Deadline
    progress: int = 0
    image_bytes: bytes = b""
    mime_type: str = "image/jpeg"
    guesses: list[RawGuess] = field(default_factory=list)
    candidates: list[BookCandidate] = field(default_factory=list)
    owned_keys: set[str] = field(default_factory=set)
    result: DetectionResult | None = None

    @property
    def job_id(self) -> str:
        return self.job.id


class PipelineStep(ABC):
    stage: str = ""

    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
