from __future__ import annotations

from typing import Any, List, Mapping, Optional

from rich.console import Console
from rich.status import Status
from rich.table import Table

from .base import Outcome, Reporter, TaskRecord, get_verbosity, task_line


class RichReporter(Reporter):
    """Interactive console output.

    A spinner names the innermost running task (decodes and diffs are single
    passes with no meaningful progress total). Summaries render as two-column
    tables.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True, highlight=False)
        self._running: List[TaskRecord] = []
        self._spinner: Optional[Status] = None

    def _sync_spinner(self) -> None:
        if not self._running:
            self.flush()
            return
        title = self._running[-1].title
        if self._spinner is None:
            self._spinner = self.console.status(title, spinner="dots")
            self._spinner.start()
        else:
            self._spinner.update(title)

    def task_started(self, rec: TaskRecord) -> None:
        self._running.append(rec)
        self._sync_spinner()

    def task_finished(self, rec: TaskRecord) -> None:
        if rec in self._running:
            self._running.remove(rec)
        self._sync_spinner()
        style = "green" if rec.outcome is Outcome.OK else "red"
        self.console.print(f"[{style}]{task_line(rec)}[/]")

    def info(self, message: str) -> None:
        self.console.print(f"[green]INFO[/]: {message}")

    def warn(self, message: str) -> None:
        self.console.print(f"[yellow]WARN[/]: {message}")

    def fail(self, message: str, code: Optional[str] = None) -> None:
        self.console.print(f"[bold red]ERROR[/]: {message}")

    def trace(self, message: str, *, level: int = 1) -> None:
        if get_verbosity() >= level:
            self.console.print(f"[cyan]VERB{level}[/]: {message}")

    def summary(self, kind: str, fields: Mapping[str, Any]) -> None:
        table = Table(title=f"{kind} summary", show_header=False, box=None)
        table.add_column(style="bold")
        table.add_column(justify="right")
        for key, value in fields.items():
            table.add_row(key, str(value))
        self.console.print(table)

    def flush(self) -> None:
        if self._spinner is not None:
            self._spinner.stop()
            self._spinner = None
