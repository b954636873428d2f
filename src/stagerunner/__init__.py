"""
stagerunner - Sequential stage runner with a live terminal checklist.

Runs an ordered list of named stages one at a time, shows a spinner and
checklist while they run, stops at the first failing stage, and writes a
human-legible failure log before exiting.

Example usage:
    from stagerunner import AuditLog, Controller, ExecutionEngine, RunConfig, Stage
    from stagerunner.tui import StageRunnerApp

    audit = AuditLog()
    config = RunConfig([Stage("Build", action=build), Stage("Push", action=push)])
    controller = Controller(ExecutionEngine(config), audit_log=audit)
    result = StageRunnerApp(controller).run()
"""

__version__ = "0.1.0"
__all__ = [
    "AuditLog",
    "Controller",
    "ExecutionEngine",
    "RunConfig",
    "RunResult",
    "Stage",
    "__version__",
]


# Lazy imports so the CLI entry point loads only what it needs
def __getattr__(name: str):
    if name == "AuditLog":
        from stagerunner.audit import AuditLog
        return AuditLog
    if name in ("Controller", "RunResult"):
        from stagerunner.controller import Controller, RunResult
        return {"Controller": Controller, "RunResult": RunResult}[name]
    if name == "ExecutionEngine":
        from stagerunner.engine import ExecutionEngine
        return ExecutionEngine
    if name in ("RunConfig", "Stage"):
        from stagerunner.stages import RunConfig, Stage
        return {"RunConfig": RunConfig, "Stage": Stage}[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
