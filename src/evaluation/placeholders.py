"""Canned evaluator results for placeholder (demo) mode.

Placeholder mode avoids every upstream call, which keeps development free of
rate limits. The canned transcript carries real markers so the derived counts
go through the same code path as live results.
"""

from __future__ import annotations

from src.evaluation.models import ConfidenceResult, TechnicalResult

PLACEHOLDER_TRANSCRIPT = (
    "So [PAUSE] I'm a software engineer with about four years of experience, "
    "um [FILLER] mostly building backend services in Python. [PAUSE] "
    "Lately I've been, like [FILLER], leading a small team that owns our "
    "payments API, and uh [FILLER] I'm looking for a role where I can grow "
    "into system design."
)
PLACEHOLDER_NOTICE = (
    "Placeholder mode: upstream AI calls are disabled to avoid rate limits."
)

PLACEHOLDER_TECHNICAL_SCORE = 72
PLACEHOLDER_TECHNICAL_FEEDBACK: tuple[str, str] = (
    "Clear summary of experience; tie it more directly to the role.",
    "Give one concrete, measurable outcome from the payments work.",
)

PLACEHOLDER_CONFIDENCE_SCORE = 7
PLACEHOLDER_CONFIDENCE_FEEDBACK: tuple[str, str] = (
    "Steady eye contact, but a few glances away while thinking.",
    "Pacing is good; trim the filler words at the start of sentences.",
)


def placeholder_technical() -> TechnicalResult:
    return TechnicalResult(
        technical_score=PLACEHOLDER_TECHNICAL_SCORE,
        feedback_points=PLACEHOLDER_TECHNICAL_FEEDBACK,
        transcript=PLACEHOLDER_TRANSCRIPT,
        raw=PLACEHOLDER_NOTICE,
    )


def placeholder_confidence() -> ConfidenceResult:
    return ConfidenceResult(
        confidence_score=PLACEHOLDER_CONFIDENCE_SCORE,
        feedback_points=PLACEHOLDER_CONFIDENCE_FEEDBACK,
        raw=PLACEHOLDER_NOTICE,
    )
