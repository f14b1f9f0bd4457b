"""Process-level settings read from the environment."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class RuntimeSettings(BaseSettings):
    """Paths, logging and transport knobs (``WORKSPACE_CHAT_*`` variables)."""

    model_config = SettingsConfigDict(
        env_prefix="WORKSPACE_CHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Fichiers
    config_file: Path | None = None
    data_dir: Path | None = None
    log_dir: Path | None = None
    response_file_name: str = "ai_response.json"

    # Logs
    log_level: str = "INFO"
    enable_debug_logs: bool = False
    log_rotate_mb: int = 5
    log_retention_days: int = 7

    # HTTP
    request_timeout: float = 30.0


@lru_cache()
def get_runtime_settings() -> RuntimeSettings:
    """Return the cached runtime settings."""
    return RuntimeSettings()
