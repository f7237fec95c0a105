"""Bounded, ordered history of completed evaluation sessions."""

from __future__ import annotations

import logging
from collections import deque
from functools import lru_cache

from src.config import settings
from src.evaluation.models import HistoryEntry
from src.storage.local_store import LocalStore

logger = logging.getLogger(__name__)

HISTORY_KEY = "history"


class HistoryStore:
    """FIFO-capped list of :class:`HistoryEntry`, oldest first.

    Appending past ``capacity`` evicts the oldest entries. Entries are never
    re-read to affect eviction order. With a ``backend`` the list is loaded on
    construction and written back after every mutation.
    """

    def __init__(self, capacity: int, backend: LocalStore | None = None) -> None:
        if capacity < 1:
            raise ValueError("history capacity must be at least 1")
        self.capacity = capacity
        self._backend = backend
        self._entries: deque[HistoryEntry] = deque(maxlen=capacity)

        if backend is not None:
            for raw in backend.get(HISTORY_KEY, []) or []:
                try:
                    self._entries.append(HistoryEntry.from_dict(raw))
                except (KeyError, TypeError, ValueError):
                    logger.warning("Skipping unreadable history entry: %r", raw)

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)
        logger.info("History entry added (%d/%d)", len(self._entries), self.capacity)
        self._persist()

    def list(self) -> list[HistoryEntry]:
        """Return entries ordered oldest first, most recent last."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        if self._backend is not None:
            self._backend.delete(HISTORY_KEY)

    def _persist(self) -> None:
        if self._backend is not None:
            self._backend.put(HISTORY_KEY, [entry.to_dict() for entry in self._entries])


@lru_cache(maxsize=1)
def get_history_store() -> HistoryStore:
    """Process-wide history store built from settings."""
    backend = LocalStore(settings.history_path) if settings.history_path else None
    return HistoryStore(settings.history_capacity, backend)
