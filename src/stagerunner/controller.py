"""
Controller for a run: a single-threaded dispatcher of discrete events.

A host (the Textual app or the headless runner) feeds events to
``Controller.dispatch`` one at a time, in arrival order, and carries out the
command it gets back:

- ``RunStage``: execute the engine's current stage, then deliver ``StageComplete``
- ``Quit``: stop the loop and exit with the run result

All decisions about what happens after a stage resolves live here, so they
can be tested without a terminal.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from stagerunner.audit import AuditLog
from stagerunner.engine import EngineState, ExecutionEngine, StageOutcome
from stagerunner.errors import EngineStateError, LogWriteError, StageRunnerError
from stagerunner.failure_log import FailureLogWriter
from stagerunner.logger import RunLogger
from stagerunner.render import Spinner, render

__all__ = [
    "RunResult",
    "Start",
    "StageComplete",
    "UserInterrupt",
    "TickFrame",
    "LoopFailure",
    "Event",
    "RunStage",
    "Quit",
    "Command",
    "Controller",
    "execute_stage_in_background",
]


class RunResult(str, Enum):
    """How the run ended."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    INTERRUPTED = "interrupted"
    ERRORED = "errored"

    @property
    def exit_code(self) -> int:
        # A stage failure is a normal termination; only the loop itself failing is not.
        return 1 if self is RunResult.ERRORED else 0


# Events


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class StageComplete:
    index: int
    outcome: StageOutcome


@dataclass(frozen=True)
class UserInterrupt:
    pass


@dataclass(frozen=True)
class TickFrame:
    pass


@dataclass(frozen=True)
class LoopFailure:
    """The host loop hit an error it cannot recover from."""
    error: BaseException


Event = Union[Start, StageComplete, UserInterrupt, TickFrame, LoopFailure]


# Commands


@dataclass(frozen=True)
class RunStage:
    index: int


@dataclass(frozen=True)
class Quit:
    result: RunResult


Command = Union[RunStage, Quit]


class Controller:
    """Dispatches run events to the engine and decides what the host does next."""

    def __init__(
        self,
        engine: ExecutionEngine,
        audit_log: Optional[AuditLog] = None,
        failure_log_writer: Optional[FailureLogWriter] = None,
        spinner: Optional[Spinner] = None,
        logger: Optional[RunLogger] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            engine: Engine for the run; the controller drives but does not own its stages
            audit_log: Audit trail written into the failure log
            failure_log_writer: Writer used once if the run fails
            spinner: Animation phase advanced on every tick
            logger: Structured event logger
        """
        self.engine = engine
        self.audit_log = audit_log if audit_log is not None else AuditLog()
        self.failure_log_writer = failure_log_writer or FailureLogWriter()
        self.spinner = spinner or Spinner()
        self.logger = logger or RunLogger(run=engine.config.name)

        self.result: Optional[RunResult] = None
        self.failure_log_path: Optional[Path] = None
        self.log_write_error: Optional[LogWriteError] = None
        self.loop_error: Optional[BaseException] = None

    @property
    def finished(self) -> bool:
        return self.result is not None

    def view(self) -> str:
        """Current checklist text."""
        return render(self.engine, self.spinner.frame)

    def dispatch(self, event: Event) -> Optional[Command]:
        """Handle one event and return the command the host should carry out.

        Events that arrive after the run has ended are ignored.
        """
        if self.result is not None:
            return None

        if isinstance(event, TickFrame):
            self.spinner.advance()
            return None
        elif isinstance(event, Start):
            return self._on_start()
        elif isinstance(event, StageComplete):
            return self._on_stage_complete(event)
        elif isinstance(event, UserInterrupt):
            return self._on_interrupt()
        elif isinstance(event, LoopFailure):
            return self._on_loop_failure(event)
        return None

    def _on_start(self) -> Command:
        state = self.engine.start()
        self.logger.log_run_started(total=len(self.engine.stages))
        if state is EngineState.SUCCEEDED:
            self.logger.log_run_succeeded(completed=0)
            return self._quit(RunResult.SUCCEEDED)
        return self._run_current_stage()

    def _run_current_stage(self) -> RunStage:
        index = self.engine.current_index
        stage = self.engine.current_stage
        total = len(self.engine.stages)
        self.audit_log.record(f"Running stage {index + 1}/{total}: {stage.name}")
        self.logger.log_stage_started(stage=stage.name, index=index, total=total)
        return RunStage(index=index)

    def _on_stage_complete(self, event: StageComplete) -> Command:
        if event.index != self.engine.current_index:
            raise EngineStateError(
                f"Completion for stage {event.index} arrived while stage "
                f"{self.engine.current_index} is current"
            )

        stage = self.engine.current_stage
        if event.outcome is StageOutcome.SKIPPED:
            self.audit_log.record(f"Skipped stage {stage.name}: already complete")
            self.logger.log_stage_skipped(stage=stage.name, index=event.index)
        elif event.outcome is StageOutcome.COMPLETED:
            self.audit_log.record(f"Completed stage {stage.name}")
            self.logger.log_stage_completed(stage=stage.name, index=event.index)
        else:
            self.audit_log.record(f"Stage {stage.name} failed")
            self.logger.log_stage_failed(stage=stage.name, index=event.index, error=str(stage.error))

        state = self.engine.advance()
        if state is EngineState.RUNNING:
            return self._run_current_stage()
        if state is EngineState.FAILED:
            self._write_failure_log()
            self.logger.log_run_failed(
                stage=stage.name, index=event.index, error=str(self.engine.terminal_error)
            )
            return self._quit(RunResult.FAILED)

        self.logger.log_run_succeeded(completed=len(self.engine.stages))
        return self._quit(RunResult.SUCCEEDED)

    def _write_failure_log(self) -> None:
        writer = self.failure_log_writer
        try:
            self.failure_log_path = writer.write(self.audit_log, self.engine.current_stage)
        except LogWriteError as e:
            # Reported, never raised: the stage failure stays the run's outcome.
            self.log_write_error = e
            self.logger.log_failure_log_write_failed(path=str(e.path), error=str(e))
        else:
            self.logger.log_failure_log_written(path=str(self.failure_log_path))

    def _on_interrupt(self) -> Quit:
        stage = self.engine.current_stage if self.engine.state is EngineState.RUNNING else None
        self.logger.log_run_interrupted(
            stage=stage.name if stage is not None else None,
            index=self.engine.current_index if stage is not None else None,
        )
        return self._quit(RunResult.INTERRUPTED)

    def _on_loop_failure(self, event: LoopFailure) -> Quit:
        self.loop_error = event.error
        self.logger.log_loop_failed(error=str(event.error))
        return self._quit(RunResult.ERRORED)

    def _quit(self, result: RunResult) -> Quit:
        self.result = result
        return Quit(result=result)


def execute_stage_in_background(
    engine: ExecutionEngine,
    deliver: Callable[[Event], None],
) -> threading.Thread:
    """Run the current stage on a daemon thread and deliver its completion event.

    The host's loop keeps handling ticks and interrupts while the action
    blocks this thread. Exiting the process does not wait for the thread, and
    the action is never cancelled. An exception that is not an ``Exception``
    (``sys.exit()`` inside an action, for example) ends the run as a loop
    failure instead of killing the thread silently.
    """
    index = engine.current_index

    def run() -> None:
        try:
            outcome = engine.execute_current_stage()
        except StageRunnerError as e:
            deliver(LoopFailure(error=e))
        except BaseException as e:
            # SystemExit and friends escape the engine's per-stage capture
            deliver(LoopFailure(error=e))
        else:
            deliver(StageComplete(index=index, outcome=outcome))

    thread = threading.Thread(target=run, name=f"stage-{index}", daemon=True)
    thread.start()
    return thread
