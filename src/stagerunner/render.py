"""Checklist view of a run: one line per stage with a status glyph and spinner."""

from __future__ import annotations

from enum import Enum
from typing import List

from rich.cells import cell_len
from rich.spinner import SPINNERS

from stagerunner.engine import ExecutionEngine
from stagerunner.stages import Stage

__all__ = ["StageGlyph", "Spinner", "render", "render_checkbox", "SPINNER_NAMES"]

SPINNER_NAMES = frozenset(SPINNERS)


class StageGlyph(Enum):
    ERROR = "❌"
    COMPLETE = "✅"
    PENDING = "🔲"


class Spinner:
    """Animation phase for the working indicator.

    Frames come from Rich's spinner table. Only ``advance()`` changes the
    phase; nothing here reads the clock.
    """

    def __init__(self, name: str = "dots") -> None:
        if name not in SPINNERS:
            raise ValueError(f"Unknown spinner '{name}'")
        self.name = name
        self.frames: List[str] = list(SPINNERS[name]["frames"])
        self.phase = 0

    @property
    def frame(self) -> str:
        return self.frames[self.phase % len(self.frames)]

    def advance(self) -> str:
        self.phase = (self.phase + 1) % len(self.frames)
        return self.frame


def render_checkbox(stage: Stage) -> StageGlyph:
    if stage.error is not None:
        return StageGlyph.ERROR
    if stage.is_complete:
        return StageGlyph.COMPLETE
    return StageGlyph.PENDING


def render(engine: ExecutionEngine, spinner_frame: str) -> str:
    """Render the header and checklist for the engine's current state.

    Pending stages show ``spinner_frame``; completed and failed stages show a
    blank placeholder of the same width so the names stay aligned.
    """
    current = engine.current_stage
    lines = [f"Current stage: {current.name if current is not None else '-'}"]

    placeholder = " " * max(cell_len(spinner_frame), 1)
    for stage in engine.stages:
        working = spinner_frame if stage.is_pending else placeholder
        lines.append(f" {render_checkbox(stage).value}  {working} {stage.name}")

    return "\n".join(lines) + "\n"
