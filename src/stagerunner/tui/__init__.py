"""
stagerunner Terminal User Interface.

Shows the live checklist and spinner for a run using the Textual framework.

Usage:
    from stagerunner.tui import StageRunnerApp

    app = StageRunnerApp(controller)
    result = app.run()

CLI:
    stagerunner run
    stagerunner run --headless
"""

from .app import RunEvent, StageRunnerApp

__all__ = [
    "StageRunnerApp",
    "RunEvent",
]
