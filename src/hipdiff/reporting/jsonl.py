from __future__ import annotations

import json
import sys
from typing import Any, Mapping, Optional, TextIO

from .base import Reporter, TaskRecord, get_verbosity


class JsonLinesReporter(Reporter):
    """One JSON object per event, for tooling that drives the CLI.

    Summaries keep their field types, so ``{"event": "summary",
    "summary_type": "diff", "additions": 2, ...}`` can be consumed without
    parsing message text.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def _emit(self, event: str, **payload: Any) -> None:
        self.stream.write(json.dumps({"event": event, **payload}, sort_keys=True) + "\n")

    def task_started(self, rec: TaskRecord) -> None:
        self._emit("task_start", id=rec.task_id, title=rec.title)

    def task_finished(self, rec: TaskRecord) -> None:
        self._emit(
            "task_end",
            id=rec.task_id,
            title=rec.title,
            status=rec.outcome.value if rec.outcome else None,
            duration_seconds=rec.elapsed,
            **rec.stats,
        )

    def info(self, message: str) -> None:
        self._emit("message", level="info", message=message)

    def warn(self, message: str) -> None:
        self._emit("message", level="warning", message=message)

    def fail(self, message: str, code: Optional[str] = None) -> None:
        self._emit("message", level="error", message=message, code=code)

    def trace(self, message: str, *, level: int = 1) -> None:
        if get_verbosity() >= level:
            self._emit("message", level=f"verbose{level}", message=message)

    def summary(self, kind: str, fields: Mapping[str, Any]) -> None:
        self._emit("summary", summary_type=kind, **fields)
