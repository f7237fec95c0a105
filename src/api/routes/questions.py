"""Interview question bank endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from src.api.models import QuestionSetResponse
from src.evaluation.question_bank import INTERVIEW_SETS

router = APIRouter()


@router.get("/api/questions", response_model=list[QuestionSetResponse])
async def list_questions() -> list[QuestionSetResponse]:
    return [
        QuestionSetResponse(category=s.category, questions=list(s.questions))
        for s in INTERVIEW_SETS
    ]
