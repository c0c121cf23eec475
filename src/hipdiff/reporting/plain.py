from __future__ import annotations

import sys
from typing import Optional, TextIO

from .base import Reporter, TaskRecord, get_verbosity, task_line

_RESET = "\x1b[0m"


class PlainReporter(Reporter):
    """Line-oriented text on stderr; ANSI colour only when writing to a TTY."""

    def __init__(self, stream: Optional[TextIO] = None, use_color: Optional[bool] = None):
        self.stream = stream or sys.stderr
        if use_color is None:
            use_color = getattr(self.stream, "isatty", lambda: False)()
        self.use_color = use_color

    def _write(self, label: str, color: str, message: str) -> None:
        if self.use_color:
            label = f"\x1b[{color}m{label}{_RESET}"
        self.stream.write(f"{label}: {message}\n")

    def task_finished(self, rec: TaskRecord) -> None:
        self.stream.write(f" {task_line(rec)}\n")

    def info(self, message: str) -> None:
        self._write("INFO", "32", message)

    def warn(self, message: str) -> None:
        self._write("WARN", "33", message)

    def fail(self, message: str, code: Optional[str] = None) -> None:
        self._write("ERROR", "31", message)

    def trace(self, message: str, *, level: int = 1) -> None:
        if get_verbosity() >= level:
            self._write(f"VERB{level}", "36", message)
