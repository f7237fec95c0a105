"""Confidence / delivery feedback endpoint backed by TwelveLabs."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, UploadFile

from src.api.dependencies import get_confidence_evaluator
from src.api.models import ConfidenceResponse

router = APIRouter()


@router.post("/api/feedback", response_model=ConfidenceResponse)
async def feedback(file: Annotated[UploadFile, File(...)]) -> ConfidenceResponse:
    """Index the clip, wait for indexing, and score delivery and confidence.

    This can take up to the configured polling budget (45 x 4s by default).
    """
    clip = await file.read()
    result = await get_confidence_evaluator().evaluate(clip, "", file.content_type or "video/webm")
    return ConfidenceResponse.from_result(result)
