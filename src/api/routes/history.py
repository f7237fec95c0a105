"""Session history endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Response

from src.api.models import HistoryEntryResponse
from src.evaluation.history import get_history_store

router = APIRouter()


@router.get("/api/history", response_model=list[HistoryEntryResponse])
async def list_history() -> list[HistoryEntryResponse]:
    """Past sessions, oldest first."""
    return [HistoryEntryResponse.from_entry(entry) for entry in get_history_store().list()]


@router.delete("/api/history", status_code=204)
async def clear_history() -> Response:
    get_history_store().clear()
    return Response(status_code=204)
