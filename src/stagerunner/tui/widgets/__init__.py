"""TUI widget components for stagerunner."""

from .progress import StageChecklist

__all__ = ["StageChecklist"]
