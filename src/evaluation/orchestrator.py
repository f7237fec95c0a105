"""End-to-end evaluation pipeline: technical || confidence -> merge -> history.

The technical (audio/transcript) and confidence (video) evaluations are
independent and run concurrently; the video path sits in a multi-second
polling loop and must not hold up the transcript. A final result is committed,
and a history entry written, only when every stage succeeds.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from src.evaluation.base import UpstreamEvaluator
from src.evaluation.errors import (
    EvaluationError,
    MissingClip,
    PartialPipelineFailure,
    PayloadTooLarge,
)
from src.evaluation.history import HistoryStore
from src.evaluation.metrics import adjust_confidence, derive_counts
from src.evaluation.models import (
    ConfidenceResult,
    EvaluationRequest,
    HistoryEntry,
    PartialFailure,
    PipelineResult,
    Stage,
    StageStatus,
    TechnicalResult,
)
from src.evaluation.question_bank import category_for_prompt

logger = logging.getLogger(__name__)

StageListener = Callable[[Stage, StageStatus], None]

_ALLOWED_TRANSITIONS: dict[StageStatus, set[StageStatus]] = {
    StageStatus.IDLE: {StageStatus.RUNNING},
    StageStatus.RUNNING: {StageStatus.SUCCESS, StageStatus.ERROR},
    StageStatus.SUCCESS: set(),
    StageStatus.ERROR: set(),
}


class StageTracker:
    """Per-run stage statuses: idle -> running -> success | error."""

    def __init__(self, listener: StageListener | None = None) -> None:
        self._statuses: dict[Stage, StageStatus] = {stage: StageStatus.IDLE for stage in Stage}
        self.errors: dict[Stage, EvaluationError] = {}
        self._listener = listener

    def status(self, stage: Stage) -> StageStatus:
        return self._statuses[stage]

    def snapshot(self) -> dict[Stage, StageStatus]:
        return dict(self._statuses)

    def _set(self, stage: Stage, status: StageStatus) -> None:
        current = self._statuses[stage]
        if status not in _ALLOWED_TRANSITIONS[current]:
            raise ValueError(f"Illegal transition for {stage}: {current} -> {status}")
        self._statuses[stage] = status
        logger.info("Stage %s: %s -> %s", stage, current, status)
        if self._listener is not None:
            self._listener(stage, status)

    def start(self, *stages: Stage) -> None:
        for stage in stages:
            self._set(stage, StageStatus.RUNNING)

    def succeed(self, *stages: Stage) -> None:
        for stage in stages:
            self._set(stage, StageStatus.SUCCESS)

    def fail(self, error: EvaluationError, *stages: Stage) -> None:
        for stage in stages:
            self.errors[stage] = error
            self._set(stage, StageStatus.ERROR)

    @property
    def all_succeeded(self) -> bool:
        return all(status is StageStatus.SUCCESS for status in self._statuses.values())


class EvaluationPipeline:
    """Drive both evaluators for one clip and reconcile their outcomes."""

    def __init__(
        self,
        technical: UpstreamEvaluator[TechnicalResult],
        confidence: UpstreamEvaluator[ConfidenceResult],
        history: HistoryStore | None = None,
        *,
        max_clip_bytes: int | None = None,
        listener: StageListener | None = None,
    ) -> None:
        self.technical = technical
        self.confidence = confidence
        self.history = history
        self.max_clip_bytes = max_clip_bytes or technical.config.max_upload_bytes
        self.listener = listener

    async def run(
        self,
        clip: bytes,
        prompt: str,
        category: str | None = None,
        mime_type: str = "video/webm",
    ) -> PipelineResult | PartialFailure:
        """Evaluate ``clip`` as an answer to ``prompt``.

        Always resolves once both stages have finished. Evaluation errors are
        reported per stage in the returned :class:`PartialFailure`; anything
        else is a bug and is re-raised after both stages complete.

        Raises:
            InputError: The clip is empty or larger than ``max_clip_bytes``.
        """
        request = EvaluationRequest(
            clip=clip,
            prompt=prompt,
            max_clip_bytes=self.max_clip_bytes,
            mime_type=mime_type,
            category=category or category_for_prompt(prompt),
        )
        return await self.run_request(request)

    async def run_request(self, request: EvaluationRequest) -> PipelineResult | PartialFailure:
        """Run both stages for an already-built request.

        Input errors are terminal: an empty or oversized clip is rejected here,
        before either stage starts or any upstream call is made.
        """
        if not request.clip:
            raise MissingClip("No clip received.")
        if request.clip_size > request.max_clip_bytes:
            raise PayloadTooLarge(request.clip_size, request.max_clip_bytes)

        tracker = StageTracker(self.listener)
        logger.info(
            "Evaluating %d-byte clip for prompt %r (%s)",
            request.clip_size,
            request.prompt,
            request.category,
        )

        outcomes = await asyncio.gather(
            self._run_technical(request, tracker),
            self._run_confidence(request, tracker),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException) and not isinstance(outcome, EvaluationError):
                raise outcome

        technical = outcomes[0] if isinstance(outcomes[0], TechnicalResult) else None
        confidence = outcomes[1] if isinstance(outcomes[1], ConfidenceResult) else None
        if not tracker.all_succeeded or technical is None or confidence is None:
            counts = derive_counts(technical.transcript) if technical is not None else None
            logger.warning(
                "Evaluation incomplete; failed stages: %s",
                ", ".join(stage.value for stage in tracker.errors),
            )
            return PartialFailure(
                statuses=tracker.snapshot(),
                errors=dict(tracker.errors),
                technical=technical,
                confidence=confidence,
                derived_pause_count=counts.pause_count if counts else None,
                derived_filler_count=counts.filler_word_count if counts else None,
                prompt=request.prompt,
                category=request.category or "",
            )

        counts = derive_counts(technical.transcript)
        result = PipelineResult(
            technical=technical,
            confidence=confidence,
            derived_pause_count=counts.pause_count,
            derived_filler_count=counts.filler_word_count,
            adjusted_confidence_score=adjust_confidence(
                confidence.confidence_score, counts.pause_count, counts.filler_word_count
            ),
            prompt=request.prompt,
            category=request.category or "",
        )
        self._record(result)
        return result

    async def run_strict(self, clip: bytes, prompt: str, category: str | None = None) -> PipelineResult:
        """Like :meth:`run`, but raise :class:`PartialPipelineFailure` on any stage error."""
        outcome = await self.run(clip, prompt, category)
        if isinstance(outcome, PartialFailure):
            raise PartialPipelineFailure(outcome)
        return outcome

    async def _run_technical(self, request: EvaluationRequest, tracker: StageTracker) -> TechnicalResult:
        stages = (Stage.TRANSCRIPTION, Stage.TECHNICAL)
        tracker.start(*stages)
        try:
            result = await self.technical.evaluate(request.clip, request.prompt, request.mime_type)
        except EvaluationError as exc:
            logger.warning("Technical stage failed: %s", exc.message)
            tracker.fail(exc, *stages)
            raise
        tracker.succeed(*stages)
        return result

    async def _run_confidence(self, request: EvaluationRequest, tracker: StageTracker) -> ConfidenceResult:
        tracker.start(Stage.CONFIDENCE)
        try:
            result = await self.confidence.evaluate(request.clip, request.prompt, request.mime_type)
        except EvaluationError as exc:
            logger.warning("Confidence stage failed: %s", exc.message)
            tracker.fail(exc, Stage.CONFIDENCE)
            raise
        tracker.succeed(Stage.CONFIDENCE)
        return result

    def _record(self, result: PipelineResult) -> None:
        if self.history is None:
            return
        self.history.append(
            HistoryEntry(
                timestamp=datetime.now(UTC).isoformat(),
                prompt=result.prompt,
                category=result.category,
                confidence_score=result.adjusted_confidence_score,
                technical_score=result.technical.technical_score,
                pause_count=result.derived_pause_count,
                filler_word_count=result.derived_filler_count,
            )
        )
