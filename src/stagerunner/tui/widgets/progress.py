"""Checklist widget showing the progress of a run."""

from textual.widgets import Static

__all__ = ["StageChecklist"]


class StageChecklist(Static):
    """Displays the rendered checklist text for the current run."""

    DEFAULT_CSS = """
    StageChecklist {
        height: auto;
        padding: 1 2;
    }
    """

    def show(self, view: str) -> None:
        """Replace the displayed checklist with a freshly rendered view."""
        self.update(view)
