from __future__ import annotations

from typing import Any, Mapping, Optional

from .base import Reporter, TaskRecord


class SilentReporter(Reporter):
    """Drops every event. Used by tests and by `-r silent`."""

    def task_finished(self, rec: TaskRecord) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def fail(self, message: str, code: Optional[str] = None) -> None:
        pass

    def summary(self, kind: str, fields: Mapping[str, Any]) -> None:
        pass
