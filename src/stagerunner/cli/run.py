"""CLI commands for running the stage pipeline."""

import sys
from typing import Optional

import click
from pydantic import ValidationError
from textual.logging import TextualHandler

from stagerunner.audit import AuditLog
from stagerunner.config import StageRunnerConfig, get_config
from stagerunner.controller import Controller, RunResult
from stagerunner.engine import ExecutionEngine
from stagerunner.failure_log import FailureLogWriter
from stagerunner.logger import RunLogger, configure_logging
from stagerunner.pipeline import EXAMPLE_STAGE_NAMES, build_example_config
from stagerunner.render import Spinner
from stagerunner.stages import RunConfig

__all__ = ["run", "stages", "build_controller", "report_result"]


def build_controller(
    run_config: RunConfig,
    config: StageRunnerConfig,
    audit_log: Optional[AuditLog] = None,
) -> Controller:
    """Wire an engine and controller for a run from settings."""
    return Controller(
        ExecutionEngine(run_config),
        audit_log=audit_log,
        failure_log_writer=FailureLogWriter(config.get_log_path()),
        spinner=Spinner(config.spinner),
        logger=RunLogger(run=run_config.name),
    )


def report_result(controller: Controller) -> int:
    """Print the final checklist and outcome, and return the process exit code."""
    click.echo(controller.view())
    result = controller.result

    if result is RunResult.SUCCEEDED:
        click.echo(f"All {len(controller.engine.stages)} stages completed")
    elif result is RunResult.FAILED:
        stage = controller.engine.current_stage
        click.echo(f"Stage {stage.name} failed: {controller.engine.terminal_error}", err=True)
        if controller.failure_log_path is not None:
            click.echo(f"Failure log written to {controller.failure_log_path}", err=True)
        if controller.log_write_error is not None:
            click.echo(str(controller.log_write_error), err=True)
    elif result is RunResult.INTERRUPTED:
        click.echo("Run interrupted by user")
    elif result is RunResult.ERRORED:
        click.echo(f"Uh oh, there was an error: {controller.loop_error}", err=True)
    else:
        click.echo("Run ended without a result", err=True)
        return 1

    return result.exit_code


@click.command("run")
@click.option(
    "--headless/--tui",
    default=None,
    help="Print plain progress lines instead of the live view (default: auto-detect)",
)
@click.option(
    "--log-file",
    default=None,
    help="Failure log path (default: stagerunner-debug.log)",
)
@click.option(
    "--tick-interval",
    type=float,
    default=None,
    help="Seconds between spinner frames",
)
@click.option(
    "--stage-delay",
    type=float,
    default=3.0,
    show_default=True,
    help="Seconds each example stage takes",
)
@click.option(
    "--fail-stage",
    type=click.Choice(list(EXAMPLE_STAGE_NAMES) + ["none"]),
    default="Two",
    show_default=True,
    help="Example stage that fails ('none' for a clean run)",
)
def run(
    headless: Optional[bool],
    log_file: Optional[str],
    tick_interval: Optional[float],
    stage_delay: float,
    fail_stage: str,
) -> None:
    """Run the example pipeline.

    Examples:
        stagerunner run
        stagerunner run --headless --fail-stage none
        stagerunner run --log-file /tmp/debug.log --stage-delay 1
    """
    overrides = {
        key: value
        for key, value in {
            "headless": headless,
            "log_file": log_file,
            "tick_interval": tick_interval,
        }.items()
        if value is not None
    }
    try:
        config = get_config(**overrides)
    except ValidationError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(1)

    use_headless = config.use_headless()
    configure_logging(
        level=config.log_level,
        fmt=config.log_format,
        handler=None if use_headless else TextualHandler(),
    )

    audit_log = AuditLog(max_entries=config.audit_log_max_entries)
    run_config = build_example_config(
        audit_log,
        delay=stage_delay,
        fail_stage=None if fail_stage == "none" else fail_stage,
    )
    controller = build_controller(run_config, config, audit_log)

    try:
        if use_headless:
            from stagerunner.headless import run_headless
            run_headless(controller, tick_interval=config.tick_interval)
        else:
            from stagerunner.tui import StageRunnerApp
            StageRunnerApp(controller, tick_interval=config.tick_interval).run()
    except KeyboardInterrupt:
        click.echo("\nRun interrupted by user")
        sys.exit(0)
    except Exception as e:
        click.echo(f"Uh oh, there was an error: {e}", err=True)
        sys.exit(1)

    sys.exit(report_result(controller))


@click.command("stages")
def stages() -> None:
    """List the stages of the example pipeline, in run order."""
    for index, name in enumerate(EXAMPLE_STAGE_NAMES, start=1):
        click.echo(f"{index}. {name}")
