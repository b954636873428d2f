"""
Built-in example pipeline.

Three stages that each sleep for a while. By default the second one fails,
which shows the failure glyph, the untouched stage after it, and the failure
log. Each action records the "commands" it runs in the audit log.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from stagerunner.audit import AuditLog
from stagerunner.stages import RunConfig, Stage

__all__ = ["EXAMPLE_STAGE_NAMES", "build_example_config"]

EXAMPLE_STAGE_NAMES = ("One", "Two", "Three")


def _make_action(
    name: str,
    audit_log: AuditLog,
    delay: float,
    fail: bool,
    sleep: Callable[[float], None],
) -> Callable[[], None]:
    def action() -> None:
        audit_log.record(f"[{name}] sleep {delay:g}s")
        sleep(delay)
        if fail:
            raise RuntimeError("This one errored")

    return action


def build_example_config(
    audit_log: AuditLog,
    delay: float = 3.0,
    fail_stage: Optional[str] = "Two",
    sleep: Callable[[float], None] = time.sleep,
) -> RunConfig:
    """Build the example run.

    Args:
        audit_log: Audit log the actions record their commands into
        delay: Seconds each stage sleeps
        fail_stage: Name of the stage that raises, or None for a clean run
        sleep: Sleep function (replaceable in tests)

    Returns:
        RunConfig with the example stages
    """
    if fail_stage is not None and fail_stage not in EXAMPLE_STAGE_NAMES:
        raise ValueError(
            f"Unknown stage '{fail_stage}', expected one of: {', '.join(EXAMPLE_STAGE_NAMES)}"
        )

    stages = [
        Stage(
            name=name,
            action=_make_action(name, audit_log, delay, name == fail_stage, sleep),
            is_complete_func=lambda: False,
        )
        for name in EXAMPLE_STAGE_NAMES
    ]
    return RunConfig(stages, name="example")
