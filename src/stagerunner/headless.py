"""Non-interactive runner for CI/CD and terminals without a TTY."""

from __future__ import annotations

import queue
import time
from typing import Callable, Optional

import click

from stagerunner.controller import (
    Controller,
    Event,
    LoopFailure,
    Quit,
    RunResult,
    RunStage,
    StageComplete,
    Start,
    TickFrame,
    UserInterrupt,
    execute_stage_in_background,
)
from stagerunner.engine import StageOutcome
from stagerunner.errors import StageRunnerError

__all__ = ["HeadlessRunner", "run_headless"]


class HeadlessRunner:
    """Drives a controller from a FIFO queue and prints one line per stage transition.

    Ticks are produced whenever no event arrives within ``tick_interval``.
    Ctrl-C is delivered as a user interrupt.
    """

    def __init__(
        self,
        controller: Controller,
        tick_interval: float = 0.1,
        echo: Callable[..., None] = click.echo,
    ) -> None:
        self.controller = controller
        self.tick_interval = tick_interval
        self.echo = echo
        self._events: "queue.Queue[Event]" = queue.Queue()

    def log(self, message: str, error: bool = False) -> None:
        """Log run progress."""
        timestamp = time.strftime("%H:%M:%S")
        prefix = "ERROR" if error else "INFO"
        self.echo(f"[{timestamp}] {prefix}: {message}", err=error)

    def post(self, event: Event) -> None:
        """Queue an event. Safe to call from any thread."""
        self._events.put(event)

    def run(self) -> Optional[RunResult]:
        """Run until the controller asks to quit."""
        self.post(Start())
        try:
            while not self.controller.finished:
                try:
                    event = self._events.get(timeout=self.tick_interval)
                except queue.Empty:
                    event = TickFrame()
                self._handle(event)
        except KeyboardInterrupt:
            self.log("Interrupted by user")
            self.controller.dispatch(UserInterrupt())

        return self.controller.result

    def _handle(self, event: Event) -> None:
        try:
            command = self.controller.dispatch(event)
        except StageRunnerError as e:
            command = self.controller.dispatch(LoopFailure(error=e))

        if isinstance(event, StageComplete):
            self._report(event)
        elif isinstance(event, LoopFailure):
            self.log(f"Run loop failed: {event.error}", error=True)

        if isinstance(command, RunStage):
            stage = self.controller.engine.current_stage
            self.log(f"Running stage {command.index + 1}/{len(self.controller.engine.stages)}: {stage.name}")
            execute_stage_in_background(self.controller.engine, self.post)
        elif isinstance(command, Quit):
            if command.result is RunResult.ERRORED and not isinstance(event, LoopFailure):
                self.log(f"Run loop failed: {self.controller.loop_error}", error=True)

    def _report(self, event: StageComplete) -> None:
        stage = self.controller.engine.stages[event.index]
        if event.outcome is StageOutcome.SKIPPED:
            self.log(f"Skipped stage {stage.name} (already complete)")
        elif event.outcome is StageOutcome.COMPLETED:
            self.log(f"Completed stage {stage.name}")
        else:
            self.log(f"Stage {stage.name} failed: {stage.error}", error=True)


def run_headless(controller: Controller, tick_interval: float = 0.1) -> Optional[RunResult]:
    """Run a controller without the TUI.

    Args:
        controller: Controller for the run
        tick_interval: Seconds between spinner ticks

    Returns:
        How the run ended
    """
    return HeadlessRunner(controller, tick_interval=tick_interval).run()
