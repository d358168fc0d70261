#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Settings - Centralized configuration management
"""

import os
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings

from .constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_MODEL,
    DEFAULT_BATCH_SIZE,
    ORACLE_RETRY_DELAY,
    ORACLE_BACKOFF_FACTOR,
    ORACLE_MAX_RETRY_DELAY,
    ORACLE_MAX_ATTEMPTS,
    JOB_RETENTION_SECONDS,
    CLEANUP_INTERVAL_SECONDS,
    API_RATE_LIMIT,
    FFMPEG_DIR_NAME,
    LOG_LEVEL,
    LOG_FILE_NAME,
)


# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent


def _default_data_dir() -> Path:
    """Per-user application data directory (holds the ffmpeg binary)."""
    xdg = os.environ.get("XDG_DATA_HOME")
    root = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return root / "ai-subtitle-translator"


class Settings(BaseSettings):
    """Application settings"""

    # ========== Server ==========
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    rate_limit: str = API_RATE_LIMIT

    # ========== Oracle ==========
    google_api_key: str = ""  # fallback credential for the CLI
    default_model: str = DEFAULT_MODEL
    default_batch_size: int = DEFAULT_BATCH_SIZE

    # Retry policy for failed oracle calls.
    # oracle_max_attempts = 0 keeps retrying forever at a fixed interval.
    oracle_retry_delay: float = ORACLE_RETRY_DELAY
    oracle_backoff_factor: float = ORACLE_BACKOFF_FACTOR
    oracle_max_retry_delay: float = ORACLE_MAX_RETRY_DELAY
    oracle_max_attempts: int = ORACLE_MAX_ATTEMPTS

    # ========== Retention ==========
    job_retention_seconds: int = JOB_RETENTION_SECONDS
    cleanup_interval_seconds: int = CLEANUP_INTERVAL_SECONDS

    # ========== Media tooling ==========
    ffmpeg_path: Optional[str] = None  # explicit binary, skips lookup
    data_dir: Path = _default_data_dir()

    # ========== Logging ==========
    log_level: str = LOG_LEVEL
    log_file: Optional[Path] = None  # defaults to <data_dir>/logs/

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Allow extra fields from .env that aren't defined in model

    @property
    def ffmpeg_dir(self) -> Path:
        return self.data_dir / FFMPEG_DIR_NAME

    @property
    def log_path(self) -> Path:
        return self.log_file or self.data_dir / "logs" / LOG_FILE_NAME

    def get_api_key(self) -> str:
        """Get the fallback Gemini API key"""
        if not self.google_api_key:
            raise ValueError("GOOGLE_API_KEY not set in .env")
        return self.google_api_key


# Global settings instance
settings = Settings()
