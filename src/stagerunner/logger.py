"""
Structured logging for run events.

Outputs one JSON object per status-changing event. Spinner ticks and view
refreshes are not logged.

Logged events:
- run.started
- stage.started
- stage.completed
- stage.skipped
- stage.failed
- run.succeeded
- run.failed
- run.interrupted
- failure_log.written
- failure_log.write_failed
- loop.failed

Usage:
    from stagerunner.logger import RunLogger, configure_logging

    configure_logging(level="info", fmt="json")
    logger = RunLogger(run="deploy")
    logger.log_stage_started(stage="Build", index=0, total=3)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

__all__ = ["RunLogger", "configure_logging", "LOGGER_NAME"]

LOGGER_NAME = "stagerunner.run"

_run_logger = logging.getLogger(LOGGER_NAME)
_run_logger.addHandler(logging.NullHandler())


class _TextFormatter(logging.Formatter):
    """Render the JSON payload as ``event key=value ...`` for consoles."""

    def format(self, record: logging.LogRecord) -> str:
        try:
            entry = json.loads(record.getMessage())
        except (TypeError, ValueError):
            return super().format(record)

        timestamp = entry.pop("timestamp", "")
        level = entry.pop("level", record.levelname.lower())
        event = entry.pop("event", "")
        fields = " ".join(f"{key}={value}" for key, value in entry.items() if value is not None)
        return f"{timestamp} {level.upper()} {event} {fields}".rstrip()


def configure_logging(
    level: str = "info",
    fmt: str = "json",
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """Attach a single output handler to the run logger.

    Args:
        level: Logging level name (debug, info, warning, error)
        fmt: "json" for one JSON object per line, "text" for console output
        handler: Destination handler (default: stderr)

    Returns:
        The configured logger
    """
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)

    if fmt == "text":
        handler.setFormatter(_TextFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(message)s"))

    for existing in list(_run_logger.handlers):
        if not isinstance(existing, logging.NullHandler):
            _run_logger.removeHandler(existing)
    _run_logger.addHandler(handler)
    _run_logger.setLevel(level.upper())
    _run_logger.propagate = False
    return _run_logger


class RunLogger:
    """
    Structured logger for run events.

    Each log entry includes standard fields for filtering:
    - run name, event type
    - stage name and position where the event concerns a stage
    """

    def __init__(self, run: str, service_name: str = "stagerunner"):
        """
        Initialize run logger.

        Args:
            run: Run name included in every entry
            service_name: Service name for log attribution
        """
        self.run = run
        self.service_name = service_name
        self._logger = _run_logger

    def _emit(
        self,
        event: str,
        level: str = "info",
        stage: Optional[str] = None,
        index: Optional[int] = None,
        **extra_fields: Any,
    ) -> None:
        """
        Emit a structured log entry.

        Args:
            event: Event type (e.g., "stage.started")
            level: Log level (info, warn, error)
            stage: Stage name, if the event concerns a stage
            index: Stage position in the run
            **extra_fields: Event-specific fields
        """
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "service": self.service_name,
            "run": self.run,
        }

        if stage is not None:
            entry["stage"] = stage
        if index is not None:
            entry["stage_index"] = index

        entry.update(extra_fields)

        log_line = json.dumps(entry, default=str)

        if level == "error":
            self._logger.error(log_line)
        elif level == "warn":
            self._logger.warning(log_line)
        else:
            self._logger.info(log_line)

    def log_run_started(self, total: int) -> None:
        """Log the start of a run."""
        self._emit(event="run.started", stage_count=total)

    def log_stage_started(self, stage: str, index: int, total: int) -> None:
        """Log that a stage's action is about to run."""
        self._emit(event="stage.started", stage=stage, index=index, stage_count=total)

    def log_stage_completed(self, stage: str, index: int) -> None:
        self._emit(event="stage.completed", stage=stage, index=index)

    def log_stage_skipped(self, stage: str, index: int) -> None:
        """Log a stage skipped because its completion check passed."""
        self._emit(event="stage.skipped", stage=stage, index=index, reason="already complete")

    def log_stage_failed(self, stage: str, index: int, error: str) -> None:
        self._emit(event="stage.failed", level="error", stage=stage, index=index, error=error)

    def log_run_succeeded(self, completed: int) -> None:
        self._emit(event="run.succeeded", stages_completed=completed)

    def log_run_failed(self, stage: str, index: int, error: str) -> None:
        """Log a run halted by a stage failure."""
        self._emit(event="run.failed", level="error", stage=stage, index=index, error=error)

    def log_run_interrupted(self, stage: Optional[str] = None, index: Optional[int] = None) -> None:
        """Log a user interrupt. The in-flight stage, if any, is left running."""
        self._emit(event="run.interrupted", level="warn", stage=stage, index=index)

    def log_failure_log_written(self, path: str) -> None:
        self._emit(event="failure_log.written", path=path)

    def log_failure_log_write_failed(self, path: str, error: str) -> None:
        """Log that the failure log could not be persisted."""
        self._emit(event="failure_log.write_failed", level="error", path=path, error=error)

    def log_loop_failed(self, error: str) -> None:
        self._emit(event="loop.failed", level="error", error=error)
