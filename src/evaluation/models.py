"""Data models for the interview evaluation pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from src.evaluation.errors import EvaluationError


class JobStatus(StrEnum):
    """Status of a remote indexing job as reported upstream."""

    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"

    @classmethod
    def from_upstream(cls, value: object) -> JobStatus:
        """Map an upstream status string onto the three states we act on.

        Anything that is not ``ready`` or ``failed`` (``queued``, ``indexing``,
        ``validating``, missing, ...) is still in flight.
        """
        text = str(value or "").strip().lower()
        if text == cls.READY:
            return cls.READY
        if text == cls.FAILED:
            return cls.FAILED
        return cls.PENDING


class PollOutcome(StrEnum):
    """Terminal result of polling an indexing job."""

    READY = "ready"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class Stage(StrEnum):
    """Pipeline stages tracked independently by the orchestrator."""

    TRANSCRIPTION = "transcription"
    TECHNICAL = "technical"
    CONFIDENCE = "confidence"


class StageStatus(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class EvaluationRequest:
    """A single user submission: the recorded clip and the prompt it answers."""

    clip: bytes
    prompt: str
    max_clip_bytes: int
    mime_type: str = "video/webm"
    category: str | None = None

    @property
    def clip_size(self) -> int:
        return len(self.clip)


@dataclass
class IndexingJob:
    """A video indexing job owned by the confidence evaluator while it polls."""

    job_id: str
    index_id: str
    status: JobStatus = JobStatus.PENDING


@dataclass(frozen=True)
class MarkerCounts:
    """Disfluency marker counts derived from a transcript."""

    pause_count: int = 0
    filler_word_count: int = 0

    @property
    def total(self) -> int:
        return self.pause_count + self.filler_word_count


@dataclass(frozen=True)
class TechnicalResult:
    """Transcript plus technical-correctness score from the audio evaluator."""

    technical_score: int  # 0 - 100
    feedback_points: tuple[str, str]
    transcript: str
    raw: str = ""


@dataclass(frozen=True)
class ConfidenceResult:
    """Delivery / confidence score from the video evaluator."""

    confidence_score: int  # 0 - 10
    feedback_points: tuple[str, ...]
    visual_feedback: str | None = None
    pause_count: int | None = None
    filler_word_count: int | None = None
    raw: str = ""


# Tagged variant: the dataclass type is the tag.
UpstreamResult = Union[TechnicalResult, ConfidenceResult]


@dataclass(frozen=True)
class PipelineResult:
    """Merged outcome of a fully successful pipeline run."""

    technical: TechnicalResult
    confidence: ConfidenceResult
    derived_pause_count: int
    derived_filler_count: int
    adjusted_confidence_score: int
    prompt: str = ""
    category: str = ""

    @property
    def complete(self) -> bool:
        return True


@dataclass
class PartialFailure:
    """Outcome of a run where at least one stage errored.

    Whatever did succeed is kept so callers can still show it.
    """

    statuses: dict[Stage, StageStatus]
    errors: dict[Stage, EvaluationError]
    technical: TechnicalResult | None = None
    confidence: ConfidenceResult | None = None
    derived_pause_count: int | None = None
    derived_filler_count: int | None = None
    prompt: str = ""
    category: str = ""

    @property
    def complete(self) -> bool:
        return False

    @property
    def failed_stages(self) -> list[Stage]:
        return [stage for stage in Stage if stage in self.errors]


@dataclass
class HistoryEntry:
    """Summary of one successful session, kept for trend display."""

    timestamp: str
    prompt: str
    category: str
    confidence_score: int
    technical_score: int
    pause_count: int = 0
    filler_word_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        return cls(
            timestamp=str(data["timestamp"]),
            prompt=str(data.get("prompt", "")),
            category=str(data.get("category", "")),
            confidence_score=int(data["confidence_score"]),
            technical_score=int(data["technical_score"]),
            pause_count=int(data.get("pause_count", 0)),
            filler_word_count=int(data.get("filler_word_count", 0)),
        )


@dataclass
class InterviewQuestionSet:
    """A named category of interview prompts."""

    category: str
    questions: list[str] = field(default_factory=list)
