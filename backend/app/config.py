"""
Configuration settings using Pydantic Settings.
"""

from pathlib import Path
from pydantic import model_validator
from pydantic_settings import BaseSettings
from functools import lru_cache

import os

BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Bundled remote pair; a user override in the local cache takes precedence.
    DEFAULT_REMOTE_URL: str = os.environ.get("DEFAULT_REMOTE_URL") or ""
    DEFAULT_REMOTE_KEY: str = os.environ.get("DEFAULT_REMOTE_KEY") or ""
    REMOTE_APPLICATION_NAME: str = "beyond-words"
    REMOTE_TIMEOUT_SECONDS: float = 10.0
    REMOTE_MAX_RETRIES: int = 2
    REMOTE_RETRY_BASE_SECONDS: float = 0.5
    REMOTE_RETRY_MAX_SECONDS: float = 4.0

    SYNC_DEBOUNCE_SECONDS: float = 2.0

    STATS_HISTORY_DAYS: int = 30

    LOCAL_CACHE_PATH: str = "database/local_cache.db"

    DEBUG: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }

    @model_validator(mode="after")
    def resolve_relative_paths(self):
        cache_path = Path(self.LOCAL_CACHE_PATH)
        if not cache_path.is_absolute():
            self.LOCAL_CACHE_PATH = str((BASE_DIR / cache_path).resolve())

        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    :return: Cached Settings instance
    :rtype: Settings
    """
    return Settings()


settings = get_settings()
