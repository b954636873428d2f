"""
Tests for StageRunnerApp, driven through Textual's test pilot.
"""

import asyncio
import sys

from stagerunner.controller import RunResult
from stagerunner.render import StageGlyph
from stagerunner.stages import Stage
from stagerunner.tui import StageRunnerApp
from stagerunner.tui.widgets import StageChecklist


def run_app(app: StageRunnerApp) -> StageRunnerApp:
    """Run the app headlessly until the controller finishes."""

    async def scenario() -> None:
        async with app.run_test() as pilot:
            for _ in range(200):
                if app.controller.finished:
                    break
                await pilot.pause(0.01)

    asyncio.run(scenario())
    return app


class TestStageRunnerApp:
    def test_successful_run(self, recorder, make_controller, log_path):
        controller = make_controller([recorder.stage("S1"), recorder.stage("S2")])

        app = run_app(StageRunnerApp(controller, tick_interval=0.01))

        assert controller.result is RunResult.SUCCEEDED
        assert app.return_value is RunResult.SUCCEEDED
        assert recorder.calls == ["S1", "S2"]
        assert not log_path.exists()

    def test_failing_run(self, recorder, make_controller, log_path):
        controller = make_controller([
            recorder.stage("S1"),
            recorder.stage("S2", error="boom"),
            recorder.stage("S3"),
        ])

        app = run_app(StageRunnerApp(controller, tick_interval=0.01))

        assert app.return_value is RunResult.FAILED
        assert recorder.calls == ["S1", "S2"]
        assert "boom" in log_path.read_text(encoding="utf-8")
        view = controller.view()
        assert StageGlyph.ERROR.value in view
        assert StageGlyph.PENDING.value in view

    def test_checklist_is_mounted(self, make_controller, blocking_action):
        controller = make_controller([Stage("slow", action=blocking_action)])
        app = StageRunnerApp(controller, tick_interval=0.01)
        seen = []

        async def scenario() -> None:
            async with app.run_test() as pilot:
                await pilot.pause(0.05)
                seen.append(len(app.query(StageChecklist)))
                blocking_action.release.set()
                for _ in range(200):
                    if controller.finished:
                        break
                    await pilot.pause(0.01)

        asyncio.run(scenario())

        assert seen == [1]
        assert blocking_action.started.is_set()
        assert controller.result is RunResult.SUCCEEDED

    def test_ctrl_c_interrupts_running_stage(self, make_controller, blocking_action, log_path):
        controller = make_controller([
            Stage("slow", action=blocking_action),
            Stage("next", action=lambda: None),
        ])
        app = StageRunnerApp(controller, tick_interval=0.01)

        async def scenario() -> None:
            async with app.run_test() as pilot:
                for _ in range(200):
                    if blocking_action.started.is_set():
                        break
                    await pilot.pause(0.01)
                await pilot.press("ctrl+c")

        asyncio.run(scenario())

        assert app.return_value is RunResult.INTERRUPTED
        assert controller.result is RunResult.INTERRUPTED
        assert blocking_action.started.is_set()
        assert not blocking_action.finished.is_set()
        assert controller.engine.current_index == 0
        assert not log_path.exists()

    def test_ctrl_q_does_not_end_the_run(self, make_controller, blocking_action):
        controller = make_controller([
            Stage("slow", action=blocking_action),
            Stage("next", action=lambda: None),
        ])
        app = StageRunnerApp(controller, tick_interval=0.01)
        still_running = []

        async def scenario() -> None:
            async with app.run_test() as pilot:
                for _ in range(200):
                    if blocking_action.started.is_set():
                        break
                    await pilot.pause(0.01)
                await pilot.press("ctrl+q")
                await pilot.pause(0.05)
                still_running.append(not controller.finished)
                blocking_action.release.set()
                for _ in range(200):
                    if controller.finished:
                        break
                    await pilot.pause(0.01)

        asyncio.run(scenario())

        assert still_running == [True]
        assert controller.result is RunResult.SUCCEEDED
        assert app.return_value is RunResult.SUCCEEDED

    def test_command_palette_is_disabled(self, make_controller):
        app = StageRunnerApp(make_controller([]))

        assert app.ENABLE_COMMAND_PALETTE is False

    def test_system_exit_in_action_ends_run(self, make_controller):
        controller = make_controller([Stage("exits", action=lambda: sys.exit(3))])

        app = run_app(StageRunnerApp(controller, tick_interval=0.01))

        assert app.return_value is RunResult.ERRORED
        assert isinstance(controller.loop_error, SystemExit)
