"""Pydantic request/response schemas for the Cadence API."""

from __future__ import annotations

from pydantic import BaseModel

from src.evaluation.errors import EvaluationError
from src.evaluation.models import (
    ConfidenceResult,
    HistoryEntry,
    PartialFailure,
    PipelineResult,
    TechnicalResult,
)


class ErrorResponse(BaseModel):
    """Body returned for every evaluation error."""

    error: str
    kind: str
    raw: str | None = None

    @classmethod
    def from_error(cls, exc: EvaluationError) -> ErrorResponse:
        return cls(error=exc.message, kind=exc.kind, raw=exc.raw)


class TechnicalScore(BaseModel):
    technical_score: int
    technical_feedback: list[str]


class TechnicalResponse(BaseModel):
    """Response body for the /api/technical endpoint."""

    transcript: str
    pause_count: int
    filler_word_count: int
    technical: TechnicalScore
    raw: str

    @classmethod
    def from_result(cls, result: TechnicalResult, pause_count: int, filler_word_count: int) -> TechnicalResponse:
        return cls(
            transcript=result.transcript,
            pause_count=pause_count,
            filler_word_count=filler_word_count,
            technical=TechnicalScore(
                technical_score=result.technical_score,
                technical_feedback=list(result.feedback_points),
            ),
            raw=result.raw,
        )


class ConfidenceFeedback(BaseModel):
    confidence_score: int
    confidence_feedback: list[str]
    visual_feedback: str | None = None
    pause_count: int | None = None
    filler_word_count: int | None = None


class ConfidenceResponse(BaseModel):
    """Response body for the /api/feedback endpoint."""

    feedback: ConfidenceFeedback
    raw: str

    @classmethod
    def from_result(cls, result: ConfidenceResult) -> ConfidenceResponse:
        return cls(
            feedback=ConfidenceFeedback(
                confidence_score=result.confidence_score,
                confidence_feedback=list(result.feedback_points),
                visual_feedback=result.visual_feedback,
                pause_count=result.pause_count,
                filler_word_count=result.filler_word_count,
            ),
            raw=result.raw,
        )


class TranscribeResponse(BaseModel):
    """Response body for the /api/transcribe endpoint."""

    text: str
    pause_count: int
    filler_word_count: int


class EvaluateResponse(BaseModel):
    """Response body for the /api/evaluate endpoint.

    ``complete`` is False when any stage errored; whatever succeeded is still
    included and the failures are listed under ``errors``.
    """

    complete: bool
    prompt: str
    category: str
    statuses: dict[str, str]
    technical: TechnicalResponse | None = None
    confidence: ConfidenceResponse | None = None
    derived_pause_count: int | None = None
    derived_filler_count: int | None = None
    adjusted_confidence_score: int | None = None
    errors: dict[str, ErrorResponse] = {}

    @classmethod
    def from_outcome(cls, outcome: PipelineResult | PartialFailure) -> EvaluateResponse:
        pauses = outcome.derived_pause_count
        fillers = outcome.derived_filler_count
        technical = None
        if outcome.technical is not None:
            technical = TechnicalResponse.from_result(outcome.technical, pauses or 0, fillers or 0)
        confidence = None
        if outcome.confidence is not None:
            confidence = ConfidenceResponse.from_result(outcome.confidence)

        if isinstance(outcome, PipelineResult):
            return cls(
                complete=True,
                prompt=outcome.prompt,
                category=outcome.category,
                statuses={"transcription": "success", "technical": "success", "confidence": "success"},
                technical=technical,
                confidence=confidence,
                derived_pause_count=pauses,
                derived_filler_count=fillers,
                adjusted_confidence_score=outcome.adjusted_confidence_score,
            )

        return cls(
            complete=False,
            prompt=outcome.prompt,
            category=outcome.category,
            statuses={stage.value: status.value for stage, status in outcome.statuses.items()},
            technical=technical,
            confidence=confidence,
            derived_pause_count=pauses,
            derived_filler_count=fillers,
            errors={stage.value: ErrorResponse.from_error(exc) for stage, exc in outcome.errors.items()},
        )


class HistoryEntryResponse(BaseModel):
    timestamp: str
    prompt: str
    category: str
    confidence_score: int
    technical_score: int
    pause_count: int
    filler_word_count: int

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> HistoryEntryResponse:
        return cls(**entry.to_dict())


class QuestionSetResponse(BaseModel):
    category: str
    questions: list[str]
