"""
dumpfetch settings (pydantic-settings).

Values come from keyword arguments, then DUMPFETCH_* environment
variables, then the defaults below.

Example:
    >>> settings = get_settings()
    >>> settings.initial_backoff
    1.0
    >>> configure_settings(max_backoff=60.0, log_json=True)
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FetchSettings(BaseSettings):
    """Settings for fetching, spooling and logging."""

    model_config = SettingsConfigDict(
        env_prefix="DUMPFETCH_",
        extra="ignore",
    )

    # Storage
    spool_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    chunk_size: int = Field(default=1024 * 1024, ge=4096)

    # Network
    request_timeout: float = Field(default=60.0, ge=1.0, le=3600.0)

    # Retry (exponential backoff)
    initial_backoff: float = Field(default=1.0, gt=0.0)
    max_backoff: float = Field(default=3600.0, gt=0.0)

    # External tools
    sevenzip_binary: str = "7z"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False

    @model_validator(mode="after")
    def _check_backoff_range(self) -> FetchSettings:
        if self.max_backoff <= self.initial_backoff:
            raise ValueError("max_backoff must be greater than initial_backoff")
        return self


_settings: FetchSettings | None = None


def get_settings() -> FetchSettings:
    """Return the process-wide settings, creating them on first use."""
    global _settings
    if _settings is None:
        _settings = FetchSettings()
    return _settings


def configure_settings(**overrides) -> FetchSettings:
    """Replace the process-wide settings with a new instance."""
    global _settings
    _settings = FetchSettings(**overrides)
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads env."""
    global _settings
    _settings = None


__all__ = ["FetchSettings", "get_settings", "configure_settings", "reset_settings"]
