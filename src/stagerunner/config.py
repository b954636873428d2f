"""
Centralized configuration for stagerunner.

Uses Pydantic BaseSettings for environment variable integration
and validation.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (STAGERUNNER_*)
3. .env file
4. Default values

Example:
    from stagerunner.config import get_config

    config = get_config()
    print(config.log_file)  # From STAGERUNNER_LOG_FILE or default

    # Override at runtime
    config = get_config(tick_interval=0.05)
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Literal, Optional, TextIO

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stagerunner.failure_log import DEFAULT_LOG_FILE
from stagerunner.render import SPINNER_NAMES


class StageRunnerConfig(BaseSettings):
    """
    Central configuration for stagerunner.

    All settings can be overridden via environment variables
    prefixed with STAGERUNNER_.

    Example:
        export STAGERUNNER_LOG_FILE=/tmp/deploy-debug.log
        export STAGERUNNER_TICK_INTERVAL=0.2
    """

    model_config = SettingsConfigDict(
        env_prefix="STAGERUNNER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Failure log
    log_file: str = Field(
        default=DEFAULT_LOG_FILE,
        description="Failure log path, relative to the working directory",
    )
    audit_log_max_entries: Optional[int] = Field(
        default=None,
        ge=1,
        description="Keep only the most recent audit entries (unbounded if not set)",
    )

    # Rendering
    tick_interval: float = Field(
        default=0.1,
        gt=0,
        description="Seconds between spinner frames",
    )
    spinner: str = Field(
        default="dots",
        description="Rich spinner name used for pending stages",
    )
    headless: Optional[bool] = Field(
        default=None,
        description="Force plain line output (auto-detected from the terminal if not set)",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for run events",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format (json for collectors, text for console)",
    )

    @field_validator("log_file")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ and environment variables in paths."""
        return os.path.expanduser(os.path.expandvars(v))

    @field_validator("spinner")
    @classmethod
    def validate_spinner(cls, v: str) -> str:
        if v not in SPINNER_NAMES:
            raise ValueError(f"Unknown spinner '{v}'")
        return v

    def get_log_path(self) -> Path:
        """Get the failure log path."""
        return Path(self.log_file)

    def use_headless(self, stream: Optional[TextIO] = None) -> bool:
        """Resolve headless mode, falling back to whether the output stream is a terminal."""
        if self.headless is not None:
            return self.headless
        return not (stream or sys.stdout).isatty()


# Global singleton
_config: Optional[StageRunnerConfig] = None


def get_config(**overrides) -> StageRunnerConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.

    Args:
        **overrides: Override any config values

    Returns:
        StageRunnerConfig instance
    """
    global _config

    if overrides or _config is None:
        _config = StageRunnerConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
