"""
Execution engine: the state machine that runs stages in order.

States::

    IDLE -> RUNNING(i) -> RUNNING(i+1) | SUCCEEDED | FAILED

The engine is the only component that writes a stage's ``error`` and
``is_complete`` fields. Other components read them for rendering and logging.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from stagerunner.errors import EngineStateError, StageActionError
from stagerunner.stages import RunConfig, Stage

__all__ = ["EngineState", "StageOutcome", "ExecutionEngine"]


class EngineState(str, Enum):
    """Lifecycle of a run."""
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (EngineState.SUCCEEDED, EngineState.FAILED)


class StageOutcome(str, Enum):
    """How a single stage resolved."""
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class ExecutionEngine:
    """Owns the stage list and the cursor into it for a single run."""

    def __init__(self, config: RunConfig) -> None:
        self.config = config
        self.current_index = 0
        self.state = EngineState.IDLE
        self.terminal_error: Optional[StageActionError] = None
        self._resolved = False

    @property
    def stages(self) -> Tuple[Stage, ...]:
        return self.config.stages

    @property
    def current_stage(self) -> Optional[Stage]:
        """The stage under the cursor, or None for an empty run."""
        if not self.stages:
            return None
        return self.stages[self.current_index]

    @property
    def is_finished(self) -> bool:
        return self.state.is_terminal

    def start(self) -> EngineState:
        """Move from IDLE to RUNNING(0), or straight to SUCCEEDED with no stages."""
        if self.state is not EngineState.IDLE:
            raise EngineStateError(f"Cannot start a run in state '{self.state.value}'")

        self.current_index = 0
        self._resolved = False
        self.state = EngineState.RUNNING if self.stages else EngineState.SUCCEEDED
        return self.state

    def execute_current_stage(self) -> StageOutcome:
        """Run the current stage's action, unless its completion check says it is done.

        The action runs synchronously and blocks the caller until it returns.
        Any exception raised by the action or by the completion check is
        captured on the stage as a StageActionError.

        Returns:
            The outcome of the stage

        Raises:
            EngineStateError: If the engine is not running or the stage already resolved
        """
        if self.state is not EngineState.RUNNING:
            raise EngineStateError(f"Cannot execute a stage in state '{self.state.value}'")
        if self._resolved:
            raise EngineStateError(
                f"Stage '{self.current_stage.name}' already ran; call advance() first"
            )

        stage = self.current_stage
        outcome = StageOutcome.COMPLETED
        try:
            if stage.is_complete_func is not None and stage.is_complete_func():
                outcome = StageOutcome.SKIPPED
            else:
                stage.action()
        except Exception as e:
            stage.error = StageActionError(stage.name, e)
            outcome = StageOutcome.FAILED
        else:
            stage.error = None
            stage.is_complete = True

        self._resolved = True
        return outcome

    def advance(self) -> EngineState:
        """Decide whether to halt, finish, or move the cursor to the next stage.

        Raises:
            EngineStateError: If the engine is not running or the current stage has not run
        """
        if self.state is not EngineState.RUNNING:
            raise EngineStateError(f"Cannot advance in state '{self.state.value}'")
        if not self._resolved:
            raise EngineStateError(
                f"Stage '{self.current_stage.name}' has not run yet; call execute_current_stage() first"
            )

        stage = self.current_stage
        if stage.error is not None:
            self.terminal_error = stage.error
            self.state = EngineState.FAILED
        elif self.current_index + 1 >= len(self.stages):
            self.state = EngineState.SUCCEEDED
        else:
            self.current_index += 1
            self._resolved = False
        return self.state
