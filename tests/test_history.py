"""Tests for the capped session history and its JSON-file backend."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.evaluation.history import HISTORY_KEY, HistoryStore
from src.evaluation.models import HistoryEntry
from src.storage.local_store import LocalStore


def _entry(n: int) -> HistoryEntry:
    return HistoryEntry(
        timestamp=f"2026-01-0{n}T10:00:00+00:00",
        prompt=f"Question {n}",
        category="Custom",
        confidence_score=n,
        technical_score=10 * n,
    )


class TestHistoryStore:
    def test_capacity_evicts_oldest(self) -> None:
        store = HistoryStore(capacity=3)
        for n in range(1, 5):
            store.append(_entry(n))

        prompts = [e.prompt for e in store.list()]
        assert prompts == ["Question 2", "Question 3", "Question 4"]
        assert len(store) == 3

    def test_list_is_a_copy(self) -> None:
        store = HistoryStore(capacity=2)
        store.append(_entry(1))
        store.list().clear()
        assert len(store) == 1

    def test_clear(self) -> None:
        store = HistoryStore(capacity=2)
        store.append(_entry(1))
        store.clear()
        assert store.list() == []

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_rejects_non_positive_capacity(self, capacity: int) -> None:
        with pytest.raises(ValueError):
            HistoryStore(capacity=capacity)


class TestPersistence:
    def test_survives_reload(self, tmp_path: Path) -> None:
        path = tmp_path / "state" / "cadence.json"
        store = HistoryStore(capacity=5, backend=LocalStore(path))
        store.append(_entry(1))
        store.append(_entry(2))

        reloaded = HistoryStore(capacity=5, backend=LocalStore(path))
        assert reloaded.list() == [_entry(1), _entry(2)]

    def test_reload_applies_capacity(self, tmp_path: Path) -> None:
        path = tmp_path / "cadence.json"
        store = HistoryStore(capacity=5, backend=LocalStore(path))
        for n in range(1, 5):
            store.append(_entry(n))

        smaller = HistoryStore(capacity=2, backend=LocalStore(path))
        assert [e.confidence_score for e in smaller.list()] == [3, 4]

    def test_clear_removes_key(self, tmp_path: Path) -> None:
        path = tmp_path / "cadence.json"
        backend = LocalStore(path)
        backend.put("recording", {"name": "latest.webm"})
        store = HistoryStore(capacity=2, backend=backend)
        store.append(_entry(1))

        store.clear()

        data = json.loads(path.read_text())
        assert HISTORY_KEY not in data
        assert data["recording"] == {"name": "latest.webm"}

    def test_unreadable_entries_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "cadence.json"
        path.write_text(json.dumps({HISTORY_KEY: [{"prompt": "no scores"}, _entry(1).to_dict()]}))

        store = HistoryStore(capacity=5, backend=LocalStore(path))
        assert store.list() == [_entry(1)]


class TestLocalStore:
    def test_get_put_delete(self, tmp_path: Path) -> None:
        store = LocalStore(tmp_path / "s.json")
        assert store.get("missing") is None
        assert store.get("missing", []) == []

        store.put("k", {"a": 1})
        assert store.get("k") == {"a": 1}

        store.delete("k")
        assert store.get("k") is None

    def test_corrupt_file_starts_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "s.json"
        path.write_text("{not json")
        store = LocalStore(path)
        assert store.get("k") is None

        store.put("k", 1)
        assert json.loads(path.read_text()) == {"k": 1}

    def test_binary_garbage_starts_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "s.json"
        path.write_bytes(b"\xff\xfe\x00\x9c garbage")
        assert LocalStore(path).get("k") is None

        store = HistoryStore(capacity=2, backend=LocalStore(path))
        assert store.list() == []

    def test_no_temp_files_left_behind(self, tmp_path: Path) -> None:
        store = LocalStore(tmp_path / "s.json")
        store.put("k", [1, 2, 3])
        assert [p.name for p in tmp_path.iterdir()] == ["s.json"]
