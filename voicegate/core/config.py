"""Unified application configuration."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 5111
    cors_origins: list[str] = ["*"]
    auto_open_browser: bool = False

    # Logs
    log_dir: str = "logs"
    log_level: str = "INFO"
    log_rotate_mb: int = 5
    log_retention_days: int = 7

    # Wait for utterance
    wait_poll_interval_ms: int = 100
    wait_min_seconds: float = 30.0
    wait_max_seconds: float = 60.0

    # Notification sound played while the agent waits
    notification_sound_enabled: bool = True
    notification_sound_command: str = "afplay /System/Library/Sounds/Funk.aiff"

    # Browser observers (server-sent events)
    sse_heartbeat_sec: float = 15.0
    disable_voice_on_disconnect: bool = True

    # Observability
    enable_metrics: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls.json_config_settings_source,
            file_secret_settings,
        )

    @staticmethod
    def json_config_settings_source() -> dict[str, object]:
        """Load config.json at the repository root when present."""
        config_path = Path(__file__).resolve().parents[2] / "config.json"
        if config_path.is_file():
            try:
                return json.loads(config_path.read_text())
            except ValueError:
                return {}
        return {}


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
