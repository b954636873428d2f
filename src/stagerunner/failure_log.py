"""
Failure log written when a run halts on a stage error.

The file is a human-legible record of the steps taken up to the failure plus
the complete error, meant to be attached to a bug report. It is written to the
working directory and overwritten by each failing run.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Union

from stagerunner.audit import AuditLog
from stagerunner.errors import LogWriteError
from stagerunner.stages import Stage

__all__ = ["DEFAULT_LOG_FILE", "FailureLogWriter", "format_failure_log"]

DEFAULT_LOG_FILE = "stagerunner-debug.log"

BANNER = "*" * 78
STEPS_HEADING = "Human legible log of steps taken and commands run up to the point of failure:"
CULPRIT_HINT = "^ The above command is likely the one that caused the error!"
ERROR_HEADING = "Complete log of the error that halted the run:"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_failure_log(audit_log: AuditLog, failing_stage: Stage, ran_at: datetime) -> str:
    """Build the failure log text."""
    lines: List[str] = [
        f"Ran at: {ran_at.isoformat()}",
        BANNER,
        STEPS_HEADING,
        BANNER,
    ]
    if audit_log.dropped:
        lines.append(f"({audit_log.dropped} earlier entries were dropped)")
    lines.extend(audit_log)
    lines.extend([CULPRIT_HINT, "", "", BANNER, ERROR_HEADING, BANNER, "", ""])

    error = failing_stage.error
    if error is None:
        lines.append(f"Stage '{failing_stage.name}' failed without an error message")
    else:
        lines.append(f"Stage '{failing_stage.name}' failed: {error}")
        lines.append("")
        lines.append(error.details)

    return "\n".join(lines) + "\n"


class FailureLogWriter:
    """Writes the failure log for a halted run."""

    def __init__(
        self,
        path: Union[str, Path] = DEFAULT_LOG_FILE,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.path = Path(path)
        self._clock = clock
        self.last_written: Optional[Path] = None

    def write(self, audit_log: AuditLog, failing_stage: Stage) -> Path:
        """Create or overwrite the failure log.

        Returns:
            Path of the written file

        Raises:
            LogWriteError: If the file cannot be created or written
        """
        content = format_failure_log(audit_log, failing_stage, self._clock())
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise LogWriteError(self.path, e) from e

        self.last_written = self.path
        return self.path
