"""
Tests for FailureLogWriter - the human-legible failure log.
"""

from datetime import datetime, timezone

import pytest

from stagerunner.audit import AuditLog
from stagerunner.engine import ExecutionEngine
from stagerunner.errors import LogWriteError
from stagerunner.failure_log import (
    BANNER,
    CULPRIT_HINT,
    DEFAULT_LOG_FILE,
    ERROR_HEADING,
    STEPS_HEADING,
    FailureLogWriter,
)
from stagerunner.stages import RunConfig

RAN_AT = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


@pytest.fixture
def failed_stage(recorder):
    engine = ExecutionEngine(RunConfig([recorder.stage("Two", error="boom")]))
    engine.start()
    engine.execute_current_stage()
    return engine.current_stage


@pytest.fixture
def writer(log_path):
    return FailureLogWriter(log_path, clock=lambda: RAN_AT)


class TestFailureLogWriter:
    def test_sections_in_order(self, writer, failed_stage):
        audit = AuditLog()
        audit.record("mkdir build")
        audit.record("make deploy")

        path = writer.write(audit, failed_stage)
        lines = path.read_text(encoding="utf-8").splitlines()

        assert lines[:7] == [
            "Ran at: 2024-05-01T12:30:00+00:00",
            BANNER,
            STEPS_HEADING,
            BANNER,
            "mkdir build",
            "make deploy",
            CULPRIT_HINT,
        ]
        assert lines[7:14] == ["", "", BANNER, ERROR_HEADING, BANNER, "", ""]
        assert lines[14] == "Stage 'Two' failed: boom"
        assert "RuntimeError: boom" in lines[15:][-1]

    def test_overwrites_previous_log(self, writer, failed_stage, log_path):
        log_path.write_text("stale content\n", encoding="utf-8")

        writer.write(AuditLog(), failed_stage)

        assert "stale content" not in log_path.read_text(encoding="utf-8")
        assert writer.last_written == log_path

    def test_default_path_is_in_working_directory(self, failed_stage, isolated_env):
        path = FailureLogWriter().write(AuditLog(), failed_stage)

        assert path.name == DEFAULT_LOG_FILE
        assert (isolated_env / DEFAULT_LOG_FILE).exists()

    def test_notes_dropped_entries(self, writer, failed_stage):
        audit = AuditLog(max_entries=2)
        for i in range(5):
            audit.record(f"step {i}")

        content = writer.write(audit, failed_stage).read_text(encoding="utf-8")

        assert "(3 earlier entries were dropped)" in content
        assert "step 0" not in content
        assert "step 3\nstep 4\n" in content

    def test_unwritable_path_raises_log_write_error(self, failed_stage, tmp_path):
        writer = FailureLogWriter(tmp_path / "missing" / "debug.log")

        with pytest.raises(LogWriteError) as exc_info:
            writer.write(AuditLog(), failed_stage)

        assert exc_info.value.path == tmp_path / "missing" / "debug.log"
        assert isinstance(exc_info.value.cause, OSError)
        assert writer.last_written is None
