"""Shared fixtures for the Cadence test suite."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from src.api.main import app
from src.config import Settings
from src.evaluation.history import get_history_store


@pytest.fixture(autouse=True)
def _empty_history() -> Iterator[None]:
    """Every test starts and ends with an empty process-wide history."""
    get_history_store().clear()
    yield
    get_history_store().clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def placeholder_settings() -> Iterator[Settings]:
    """Settings with every upstream call replaced by canned results."""
    cfg = Settings(_env_file=None, ai_calls_disabled=True)  # type: ignore[call-arg]
    with patch("src.api.dependencies.settings", cfg):
        yield cfg


@pytest.fixture
def live_settings() -> Iterator[Settings]:
    """Live-mode settings with fake keys and a 1 MB upload limit."""
    cfg = Settings(  # type: ignore[call-arg]
        _env_file=None,
        technical_mode="live",
        confidence_mode="live",
        gemini_api_key="fake-gemini-key",
        twelvelabs_api_key="fake-twelvelabs-key",
        max_upload_mb=1,
    )
    with patch("src.api.dependencies.settings", cfg):
        yield cfg
