"""
Audit log of notable actions taken during a run.

The audit log is rendered into the failure log when a run halts, so that a
human can see what was done up to the point of failure. It is append-only and
is never cleared within a process. Stage actions may record from the stage
thread while the controller records from the host loop, so appends are locked.

By default the log is unbounded. Passing ``max_entries`` keeps only the most
recent entries and counts how many older ones were dropped.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Iterator, List, Optional

__all__ = ["AuditLog"]


class AuditLog:
    """Ordered, append-only list of human-readable action descriptions."""

    def __init__(self, max_entries: Optional[int] = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: Deque[str] = deque(maxlen=max_entries)
        self._dropped = 0
        self._lock = threading.Lock()

    def record(self, entry: str) -> None:
        """Append one entry, evicting the oldest if the log is bounded and full."""
        with self._lock:
            if self.max_entries is not None and len(self._entries) == self.max_entries:
                self._dropped += 1
            self._entries.append(entry)

    @property
    def dropped(self) -> int:
        """Number of entries evicted because of ``max_entries``."""
        return self._dropped

    @property
    def entries(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self._entries)
