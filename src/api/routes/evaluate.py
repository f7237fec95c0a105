"""Full pipeline endpoint: technical and confidence evaluation in one call."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile

from src.api.dependencies import get_pipeline
from src.api.models import EvaluateResponse
from src.evaluation.errors import PartialPipelineFailure
from src.evaluation.models import PartialFailure

router = APIRouter()


@router.post("/api/evaluate", response_model=EvaluateResponse)
async def evaluate(
    file: Annotated[UploadFile, File(...)],
    prompt: Annotated[str, Form()],
    category: Annotated[str | None, Form()] = None,
    require_complete: Annotated[bool, Form()] = False,
) -> EvaluateResponse:
    """Run both evaluations concurrently and merge them.

    A partial failure still returns 200 with ``complete: false``, the stage
    that succeeded, and per-stage errors. Set ``require_complete`` to get an
    error response instead.
    """
    clip = await file.read()
    pipeline = get_pipeline()
    outcome = await pipeline.run(clip, prompt, category, file.content_type or "video/webm")

    if require_complete and isinstance(outcome, PartialFailure):
        raise PartialPipelineFailure(outcome)
    return EvaluateResponse.from_outcome(outcome)
