"""
Operator facing output: progress bars for polling loops and a shared console.
"""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TaskProgressColumn, TextColumn

_console: Optional[Console] = None


def get_console() -> Console:
    global _console
    if _console is None:
        _console = Console(highlight=False)
    return _console


class ProgressReporter:
    """
    Progress bar driven by polling ticks.

    The total is only known after the first successful probe (an empty
    namespace reports zero pods), so every update carries its own total.
    Disabled reporters accept the same calls and draw nothing.
    """

    def __init__(self, description: str, *, console: Optional[Console] = None, enabled: bool = True):
        self.description = description
        self.console = console or get_console()
        self.enabled = enabled
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def __enter__(self) -> "ProgressReporter":
        if self.enabled:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                TextColumn("{task.completed}/{task.total}"),
                console=self.console,
            )
            self._progress.start()
            self._task = self._progress.add_task(self.description, total=None)
        return self

    def update(self, completed: int, total: int) -> None:
        if self._progress is None or self._task is None:
            return
        self._progress.update(self._task, completed=completed, total=total or None)

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
