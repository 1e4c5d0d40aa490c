from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

from shared.protocol.constants import DEFAULT_CHUNK_SIZE
from shared.settings import load_settings
from shared.utils import split_address

ON_ERROR_CHOICES = ("abort", "skip")

DEFAULT_WORKER_CONFIG: Dict[str, Any] = {
    "handler": "http",
    "on_error": "abort",
    "chunk_size": DEFAULT_CHUNK_SIZE,
    "log_level": "INFO",
    "rpc_address": "127.0.0.1:6000",
}

WORKER_CONFIG = DEFAULT_WORKER_CONFIG.copy()


class ConfigError(Exception):
    """Raised when worker configuration values are invalid."""

    pass


def load_worker_config(env_path: str = ".env") -> Dict[str, Any]:
    if Path(env_path).exists():
        load_dotenv(env_path)
    try:
        settings = load_settings(env_path)
        WORKER_CONFIG["chunk_size"] = int(os.getenv("WORKER_CHUNK_SIZE", settings.frame_chunk_size))
    except ValueError as exc:
        raise ConfigError(f"Invalid chunk size: {exc}") from exc
    WORKER_CONFIG["handler"] = os.getenv("WORKER_HANDLER", WORKER_CONFIG["handler"])
    WORKER_CONFIG["on_error"] = os.getenv("WORKER_ON_ERROR", WORKER_CONFIG["on_error"]).lower()
    WORKER_CONFIG["log_level"] = os.getenv("WORKER_LOG_LEVEL", settings.log_level).upper()
    WORKER_CONFIG["rpc_address"] = os.getenv("WORKER_RPC_ADDRESS", WORKER_CONFIG["rpc_address"])
    _validate_config()
    return WORKER_CONFIG


def _validate_config() -> None:
    if WORKER_CONFIG["on_error"] not in ON_ERROR_CHOICES:
        raise ConfigError(f"on_error must be one of {', '.join(ON_ERROR_CHOICES)}")
    if WORKER_CONFIG["chunk_size"] <= 0:
        raise ConfigError("chunk_size must be positive")
    try:
        split_address(WORKER_CONFIG["rpc_address"])
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


__all__ = ["WORKER_CONFIG", "DEFAULT_WORKER_CONFIG", "ON_ERROR_CHOICES", "ConfigError", "load_worker_config"]
