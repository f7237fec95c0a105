from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # API Keys
    gemini_api_key: str = ""
    twelvelabs_api_key: str = ""

    # Evaluator modes: "live", "placeholder" or "disabled"
    technical_mode: str = "live"
    confidence_mode: str = "live"
    # Forces placeholder mode for every evaluator (demo / rate-limit relief)
    ai_calls_disabled: bool = False

    # Gemini (technical + transcript)
    gemini_technical_model: str = "gemini-2.5-flash-lite"
    gemini_transcribe_model: str = "gemini-2.5-flash-lite"
    technical_score_scale: int = 100

    # TwelveLabs (confidence / video)
    twelvelabs_base_url: str = "https://api.twelvelabs.io/v1.3"
    twelvelabs_index_id: str = ""  # Optional; a fresh index is created per run if absent
    twelvelabs_index_name: str = "interview-feedback"
    twelvelabs_model: str = "pegasus1.2"
    twelvelabs_index_poll_interval_ms: int = 4000
    twelvelabs_index_poll_limit: int = 45

    # App config
    max_upload_mb: int = 20
    request_timeout_ms: int = 60_000
    history_capacity: int = 20
    history_path: str = ""  # Empty keeps history in memory only
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
