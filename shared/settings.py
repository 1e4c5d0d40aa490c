from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from shared.protocol.constants import DEFAULT_CHUNK_SIZE


@dataclass
class Settings:
    """Shared baseline settings (worker and client configs build on top)."""

    log_level: str = "INFO"
    frame_chunk_size: int = DEFAULT_CHUNK_SIZE


SETTINGS = Settings()


def load_settings(env_path: str = ".env") -> Settings:
    """Load shared settings from env/.env."""
    if Path(env_path).exists():
        load_dotenv(env_path)
    SETTINGS.log_level = os.getenv("RUNNER_LOG_LEVEL", SETTINGS.log_level).upper()
    SETTINGS.frame_chunk_size = int(os.getenv("RUNNER_FRAME_CHUNK_SIZE", SETTINGS.frame_chunk_size))
    if SETTINGS.frame_chunk_size <= 0:
        raise ValueError("RUNNER_FRAME_CHUNK_SIZE must be positive")
    return SETTINGS


__all__ = ["Settings", "SETTINGS", "load_settings"]
