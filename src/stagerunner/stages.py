"""Stage definitions and the run configuration handed to the engine.

A stage is a single step in a run. Only one stage runs at a time, and the
whole run stops as soon as any stage fails.

Usage:
    from stagerunner.stages import RunConfig, Stage

    config = RunConfig(
        name="deploy",
        stages=[
            Stage("Build", action=build),
            Stage("Push", action=push, is_complete_func=image_exists),
        ],
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Tuple

from stagerunner.errors import StageActionError

__all__ = ["Stage", "RunConfig"]


@dataclass
class Stage:
    """A single named unit of work.

    Attributes:
        name: Display name, not required to be unique
        action: Performs the stage's work; raising an exception fails the stage
        is_complete_func: Optional check; when it returns True the action is skipped
        reset: Optional compensating operation, kept for callers but never run by the engine
        error: Set by the engine when the action fails
        is_complete: Set by the engine once the stage ran or was skipped without error
    """

    name: str
    action: Callable[[], None]
    is_complete_func: Optional[Callable[[], bool]] = None
    reset: Optional[Callable[[], None]] = None
    error: Optional[StageActionError] = field(default=None, compare=False)
    is_complete: bool = field(default=False, compare=False)

    @property
    def is_pending(self) -> bool:
        """True while the stage has neither completed nor failed."""
        return self.error is None and not self.is_complete


@dataclass(frozen=True)
class RunConfig:
    """Ordered, fixed-length set of stages for one run."""

    stages: Tuple[Stage, ...]
    name: str = "run"

    def __init__(self, stages: Iterable[Stage], name: str = "run") -> None:
        object.__setattr__(self, "stages", tuple(stages))
        object.__setattr__(self, "name", name)

    def __len__(self) -> int:
        return len(self.stages)

    @property
    def stage_names(self) -> Tuple[str, ...]:
        return tuple(stage.name for stage in self.stages)
