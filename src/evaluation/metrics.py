"""Disfluency counts and the adjusted confidence score.

The transcription prompt asks the model to emit ``[PAUSE]`` for long pauses
and ``[FILLER]`` for filler words inline. Some prompt revisions asked for
``[FILLER_WORD]`` instead, so both spellings count as filler evidence until the
upstream contract says otherwise.
"""

from __future__ import annotations

from src.evaluation.models import MarkerCounts

PAUSE_MARKER = "[PAUSE]"
FILLER_MARKERS: tuple[str, ...] = ("[FILLER]", "[FILLER_WORD]")

# Minimum adjusted score so the UI never shows an empty bar.
MIN_ADJUSTED_CONFIDENCE = 1


def count_marker(text: str, marker: str) -> int:
    """Non-overlapping occurrences of ``marker`` in ``text``."""
    if not text or not marker:
        return 0
    return text.count(marker)


def derive_counts(transcript: str) -> MarkerCounts:
    """Count pause and filler markers in a transcript."""
    return MarkerCounts(
        pause_count=count_marker(transcript, PAUSE_MARKER),
        filler_word_count=sum(count_marker(transcript, m) for m in FILLER_MARKERS),
    )


def adjust_confidence(raw_score: int, pause_count: int, filler_word_count: int) -> int:
    """Discount a raw confidence score by observed disfluency.

    Every two markers cost one point; the result never drops below
    :data:`MIN_ADJUSTED_CONFIDENCE`. This is a tunable policy, not a measurement.
    """
    if pause_count < 0 or filler_word_count < 0:
        raise ValueError("marker counts must be non-negative")
    penalty = (pause_count + filler_word_count) // 2
    return max(MIN_ADJUSTED_CONFIDENCE, raw_score - penalty)
