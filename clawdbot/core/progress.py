"""Progress reporting on top of ``rich.progress``."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
)

from clawdbot.core.utils import err_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from clawdbot.memory.models import SyncProgress


class ProgressReporter:
    """Drives one progress task; also usable as a `SyncProgressObserver`.

    Without a live bar (``progress is None``) label changes are printed as
    plain lines when ``line_fallback`` is set and dropped otherwise.
    """

    def __init__(
        self,
        progress: Progress | None,
        task_id: TaskID | None,
        *,
        label: str,
        console: Console,
        line_fallback: bool = False,
    ) -> None:
        self._progress = progress
        self._task_id = task_id
        self._console = console
        self._line_fallback = line_fallback
        self.label = label
        self.completed = 0
        self.total: int | None = None

    def set_label(self, label: str) -> None:
        if label == self.label:
            return
        self.label = label
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, description=label)
        elif self._line_fallback:
            self._console.print(f"[dim]{label}[/dim]")

    def tick(self, amount: int = 1) -> None:
        self.completed += amount
        if self._progress is not None and self._task_id is not None:
            self._progress.advance(self._task_id, amount)

    def update(self, *, completed: int, total: int | None, label: str | None = None) -> None:
        self.completed = completed
        self.total = total if total and total > 0 else None
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, completed=completed, total=self.total)
        if label:
            self.set_label(label)

    def on_progress(self, update: SyncProgress) -> None:
        self.update(completed=update.completed, total=update.total, label=update.label)


@contextmanager
def track_progress(
    label: str,
    *,
    total: int | None = None,
    line_fallback: bool = False,
    console: Console | None = None,
) -> Iterator[ProgressReporter]:
    """Show a transient progress bar for the duration of the block.

    Falls back to line output (``line_fallback``) or silence when the console
    is not interactive.
    """
    console = console or err_console
    if line_fallback or not console.is_terminal:
        reporter = ProgressReporter(
            None,
            None,
            label=label,
            console=console,
            line_fallback=line_fallback,
        )
        if line_fallback:
            console.print(f"[dim]{label}[/dim]")
        yield reporter
        return

    with Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    ) as progress:
        task_id = progress.add_task(label, total=total if total else None)
        yield ProgressReporter(progress, task_id, label=label, console=console)
