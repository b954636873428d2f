"""
Pytest configuration and fixtures for stagerunner tests.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Generator, List, Optional

import pytest

from stagerunner.audit import AuditLog
from stagerunner.config import reset_config
from stagerunner.controller import Controller, Quit, RunStage, StageComplete, Start
from stagerunner.engine import ExecutionEngine
from stagerunner.failure_log import FailureLogWriter
from stagerunner.logger import LOGGER_NAME
from stagerunner.stages import RunConfig, Stage


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Run each test in its own working directory with default settings."""
    for key in list(os.environ):
        if key.startswith("STAGERUNNER_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    reset_config()

    yield tmp_path

    reset_config()


@pytest.fixture(autouse=True)
def restore_run_logger() -> Generator[None, None, None]:
    """Undo handler changes made by configure_logging()."""
    run_logger = logging.getLogger(LOGGER_NAME)
    handlers = list(run_logger.handlers)
    level = run_logger.level
    propagate = run_logger.propagate

    yield

    run_logger.handlers[:] = handlers
    run_logger.setLevel(level)
    run_logger.propagate = propagate


# ============================================================================
# Stage Fixtures
# ============================================================================


class StageRecorder:
    """Builds stages that record the order their actions and checks are called in."""

    def __init__(self) -> None:
        self.calls: List[str] = []

    def stage(
        self,
        name: str,
        error: Optional[str] = None,
        already_complete: Optional[bool] = None,
    ) -> Stage:
        def action() -> None:
            self.calls.append(name)
            if error is not None:
                raise RuntimeError(error)

        is_complete_func: Optional[Callable[[], bool]] = None
        if already_complete is not None:
            def is_complete_func() -> bool:
                self.calls.append(f"check:{name}")
                return already_complete

        return Stage(name=name, action=action, is_complete_func=is_complete_func)


@pytest.fixture
def recorder() -> StageRecorder:
    return StageRecorder()


@pytest.fixture
def audit_log() -> AuditLog:
    return AuditLog()


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "stagerunner-debug.log"


@pytest.fixture
def make_controller(audit_log: AuditLog, log_path: Path) -> Callable[..., Controller]:
    """Factory for a controller over the given stages, writing its log to tmp_path."""

    def factory(stages: List[Stage], name: str = "test-run") -> Controller:
        engine = ExecutionEngine(RunConfig(stages, name=name))
        return Controller(
            engine,
            audit_log=audit_log,
            failure_log_writer=FailureLogWriter(log_path),
        )

    return factory


def _run_inline(controller: Controller) -> Quit:
    command = controller.dispatch(Start())
    while isinstance(command, RunStage):
        outcome = controller.engine.execute_current_stage()
        command = controller.dispatch(StageComplete(index=command.index, outcome=outcome))
    assert isinstance(command, Quit)
    return command


@pytest.fixture
def run_inline() -> Callable[[Controller], Quit]:
    """Run a controller to completion on the calling thread.

    Stage actions are executed inline where a host would start a stage thread.
    """
    return _run_inline


@pytest.fixture
def blocking_action() -> Generator["BlockingAction", None, None]:
    action = BlockingAction()
    yield action
    action.release.set()


class BlockingAction:
    """A stage action that blocks until released, to simulate a long-running stage."""

    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()
        self.finished = threading.Event()

    def __call__(self) -> None:
        self.started.set()
        self.release.wait(timeout=10)
        self.finished.set()
