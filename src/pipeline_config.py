"""Pipeline configuration: evaluator modes and per-client config dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.config import Settings
from src.evaluation.errors import ConfigError


class EvaluatorMode(str, Enum):
    """How an upstream evaluator behaves when invoked."""

    LIVE = "live"
    PLACEHOLDER = "placeholder"
    DISABLED = "disabled"


@dataclass(frozen=True)
class ClientConfig:
    """Immutable configuration handed to an upstream evaluation client.

    Built once from :class:`~src.config.Settings` and passed into the client
    constructor, so no call site reads the environment directly.
    """

    mode: EvaluatorMode = EvaluatorMode.LIVE
    api_key: str = ""
    model_id: str = ""
    max_upload_bytes: int = 20 * 1024 * 1024
    timeout_ms: int = 60_000

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


@dataclass(frozen=True)
class IndexingConfig:
    """Immutable configuration for the video indexing workflow."""

    base_url: str = "https://api.twelvelabs.io/v1.3"
    index_id: str | None = None
    index_name: str = "interview-feedback"
    poll_interval_ms: int = 4000
    poll_max_attempts: int = 45


def _resolve_mode(raw_mode: str, ai_calls_disabled: bool) -> EvaluatorMode:
    if ai_calls_disabled:
        return EvaluatorMode.PLACEHOLDER
    try:
        return EvaluatorMode(raw_mode.strip().lower())
    except ValueError:
        raise ConfigError(f"Unknown evaluator mode {raw_mode!r}") from None


def technical_config(settings: Settings, model_id: str | None = None) -> ClientConfig:
    """Client config for the Gemini technical/transcript evaluator."""
    return ClientConfig(
        mode=_resolve_mode(settings.technical_mode, settings.ai_calls_disabled),
        api_key=settings.gemini_api_key,
        model_id=model_id or settings.gemini_technical_model,
        max_upload_bytes=settings.max_upload_bytes,
        timeout_ms=settings.request_timeout_ms,
    )


def confidence_config(settings: Settings) -> ClientConfig:
    """Client config for the TwelveLabs confidence evaluator."""
    return ClientConfig(
        mode=_resolve_mode(settings.confidence_mode, settings.ai_calls_disabled),
        api_key=settings.twelvelabs_api_key,
        model_id=settings.twelvelabs_model,
        max_upload_bytes=settings.max_upload_bytes,
        timeout_ms=settings.request_timeout_ms,
    )


def indexing_config(settings: Settings) -> IndexingConfig:
    return IndexingConfig(
        base_url=settings.twelvelabs_base_url,
        index_id=settings.twelvelabs_index_id or None,
        index_name=settings.twelvelabs_index_name,
        poll_interval_ms=settings.twelvelabs_index_poll_interval_ms,
        poll_max_attempts=settings.twelvelabs_index_poll_limit,
    )
