"""
KV-Dict Configuration Settings

This module contains all configuration constants for the KV-Dict server.
Every tunable can be overridden through a KVDICT_* environment variable.
"""

import os
from dataclasses import dataclass


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


@dataclass
class Settings:
    """Server configuration settings."""

    # Network settings
    HOST: str = os.environ.get("KVDICT_HOST", "0.0.0.0")
    PORT: int = int(os.environ.get("KVDICT_PORT", "27000"))

    # Protocol settings
    MAX_KEY_LENGTH: int = 255
    MAX_VALUE_LENGTH: int = 255
    LENIENT_PARSING: bool = _env_flag("KVDICT_LENIENT_PARSING")

    # Persistence settings
    DATA_FILE: str = os.environ.get("KVDICT_DATA_FILE", "./data.json")
    SNAPSHOT_INTERVAL: float = float(os.environ.get("KVDICT_SNAPSHOT_INTERVAL", "30"))

    # Connection settings
    READ_BUFFER_SIZE: int = 4096
    READ_TIMEOUT: float = float(os.environ.get("KVDICT_READ_TIMEOUT", "30"))  # 0 disables

    # Logging settings
    DEBUG: bool = _env_flag("KVDICT_DEBUG")
    LOG_LEVEL: str = os.environ.get("KVDICT_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
