"""Exception types raised by the stage runner."""

from __future__ import annotations

import traceback
from pathlib import Path
from typing import Optional

__all__ = [
    "StageRunnerError",
    "StageActionError",
    "LogWriteError",
    "EngineStateError",
]


class StageRunnerError(Exception):
    """Base class for stage runner errors."""
    pass


class StageActionError(StageRunnerError):
    """A stage's action (or completion check) failed. Fatal to the run."""

    def __init__(self, stage_name: str, cause: BaseException) -> None:
        self.stage_name = stage_name
        self.cause = cause
        super().__init__(str(cause) or type(cause).__name__)

    @property
    def details(self) -> str:
        """Full text of the underlying exception, including its traceback."""
        return "".join(
            traceback.format_exception(type(self.cause), self.cause, self.cause.__traceback__)
        ).rstrip()


class LogWriteError(StageRunnerError):
    """The failure log could not be written."""

    def __init__(self, path: Path, cause: Optional[BaseException] = None) -> None:
        self.path = path
        self.cause = cause
        message = f"Could not write failure log to {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class EngineStateError(StageRunnerError):
    """An engine operation was called in a state that does not allow it."""
    pass
