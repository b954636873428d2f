"""Textual application hosting a run."""

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message

from stagerunner.controller import (
    Controller,
    Event,
    LoopFailure,
    Quit,
    RunResult,
    RunStage,
    Start,
    TickFrame,
    UserInterrupt,
    execute_stage_in_background,
)
from stagerunner.errors import StageRunnerError
from stagerunner.tui.widgets.progress import StageChecklist

__all__ = ["StageRunnerApp", "RunEvent"]


class RunEvent(Message):
    """Carries a controller event through Textual's message queue."""

    def __init__(self, event: Event) -> None:
        super().__init__()
        self.event = event


class StageRunnerApp(App[RunResult]):
    """Shows the checklist and spinner while the controller works through the stages.

    Textual processes messages one at a time in arrival order, so stage
    completions, spinner ticks and the interrupt key never interleave.
    """

    TITLE = "stagerunner"

    # ctrl+c is the only way out of a run
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("ctrl+c", "interrupt", "Quit", priority=True),
    ]

    DEFAULT_CSS = """
    Screen {
        padding: 1;
    }
    """

    def __init__(self, controller: Controller, tick_interval: float = 0.1) -> None:
        """Initialize the app.

        Args:
            controller: Controller for the run
            tick_interval: Seconds between spinner frames
        """
        super().__init__()
        self.controller = controller
        self.tick_interval = tick_interval

    def compose(self) -> ComposeResult:
        yield StageChecklist(self.controller.view(), id="checklist")

    def on_mount(self) -> None:
        """Start the spinner clock and the run."""
        self.set_interval(self.tick_interval, self._tick)
        self.post_message(RunEvent(Start()))

    def _tick(self) -> None:
        self.post_message(RunEvent(TickFrame()))

    def _deliver(self, event: Event) -> None:
        # Called from the stage thread; post_message is thread-safe.
        self.post_message(RunEvent(event))

    def on_run_event(self, message: RunEvent) -> None:
        self._dispatch(message.event)

    def action_interrupt(self) -> None:
        """Quit immediately, leaving any in-flight stage action running."""
        self._dispatch(UserInterrupt())

    async def action_quit(self) -> None:
        """Ignore Textual's built-in quit so the run always ends through the controller."""

    def _dispatch(self, event: Event) -> None:
        if self.controller.finished:
            return

        try:
            command = self.controller.dispatch(event)
        except StageRunnerError as e:
            self.log.error(f"Run loop failed: {e}")
            command = self.controller.dispatch(LoopFailure(error=e))

        self.query_one("#checklist", StageChecklist).show(self.controller.view())

        if isinstance(command, RunStage):
            execute_stage_in_background(self.controller.engine, self._deliver)
        elif isinstance(command, Quit):
            self.exit(command.result)
