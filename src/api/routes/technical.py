"""Technical + transcript endpoints backed by the Gemini evaluator."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile

from src.api.dependencies import get_technical_evaluator
from src.api.models import TechnicalResponse, TranscribeResponse
from src.evaluation.metrics import derive_counts

router = APIRouter()


@router.post("/api/technical", response_model=TechnicalResponse)
async def technical(
    file: Annotated[UploadFile, File(...)],
    prompt: Annotated[str, Form()],
) -> TechnicalResponse:
    """Transcribe a clip and score the answer for technical correctness.

    Pause and filler counts are derived locally from the transcript markers
    rather than trusted from the model.
    """
    clip = await file.read()
    evaluator = get_technical_evaluator()
    result = await evaluator.evaluate(clip, prompt, file.content_type or "video/webm")

    counts = derive_counts(result.transcript)
    return TechnicalResponse.from_result(result, counts.pause_count, counts.filler_word_count)


@router.post("/api/transcribe", response_model=TranscribeResponse)
async def transcribe(file: Annotated[UploadFile, File(...)]) -> TranscribeResponse:
    """Return a marker-annotated transcript without scoring it."""
    clip = await file.read()
    text = await get_technical_evaluator().transcribe(clip, file.content_type or "video/webm")
    counts = derive_counts(text)
    return TranscribeResponse(
        text=text,
        pause_count=counts.pause_count,
        filler_word_count=counts.filler_word_count,
    )
