"""Reporter protocol, the active-reporter registry and the task helper.

A reporter receives a small set of events:

* task started / finished, with the stats the task attached on the way out;
* info, warn and fail messages;
* trace lines, dropped unless the global verbosity reaches their level;
* summaries: a kind (``"decode"``, ``"diff"``) and flat key/value fields.

Task bookkeeping (timing, outcome, stats) lives in :func:`task`, so backends
only render.
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional

__all__ = [
    "Outcome",
    "TaskRecord",
    "Reporter",
    "STAT_KEYS",
    "task_line",
    "summary_line",
    "set_reporter",
    "get_reporter",
    "set_verbosity",
    "get_verbosity",
    "task",
]


class Outcome(Enum):
    OK = "ok"
    FAILED = "failed"


_ICONS = {Outcome.OK: "✔", Outcome.FAILED: "✖"}

# Task stats echoed on the completion line, in this order.
STAT_KEYS = ("assets", "layers", "bytes", "additions", "deletions", "modifications")


@dataclass(slots=True)
class TaskRecord:
    task_id: str
    title: str
    started: float = field(default_factory=time.perf_counter)
    finished: Optional[float] = None
    outcome: Optional[Outcome] = None
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def elapsed(self) -> float:
        if self.finished is None:
            return 0.0
        return self.finished - self.started


def task_line(rec: TaskRecord) -> str:
    icon = _ICONS.get(rec.outcome, "…")
    shown = [f"{k}={rec.stats[k]}" for k in STAT_KEYS if k in rec.stats]
    tail = f" [{' '.join(shown)}]" if shown else ""
    return f"{icon} {rec.title} ({rec.elapsed:.2f}s){tail}"


def summary_line(kind: str, fields: Mapping[str, Any]) -> str:
    pairs = " ".join(f"{k}={v}" for k, v in fields.items())
    return f"{kind.capitalize()} summary: {pairs}"


_VERBOSITY = 0  # -v count from the CLI


def set_verbosity(level: int) -> None:
    global _VERBOSITY
    _VERBOSITY = max(0, level)


def get_verbosity() -> int:
    return _VERBOSITY


class Reporter:
    """Base backend. Subclasses override what they render."""

    def task_started(self, rec: TaskRecord) -> None:
        pass

    def task_finished(self, rec: TaskRecord) -> None:
        raise NotImplementedError

    def info(self, message: str) -> None:
        raise NotImplementedError

    def warn(self, message: str) -> None:
        self.info(message)

    def fail(self, message: str, code: Optional[str] = None) -> None:
        raise NotImplementedError

    def trace(self, message: str, *, level: int = 1) -> None:
        pass

    def summary(self, kind: str, fields: Mapping[str, Any]) -> None:
        self.info(summary_line(kind, fields))

    def flush(self) -> None:
        pass


_ACTIVE: Optional[Reporter] = None


def set_reporter(rep: Reporter) -> None:
    global _ACTIVE
    _ACTIVE = rep


def get_reporter() -> Reporter:
    global _ACTIVE
    if _ACTIVE is None:
        from .plain import PlainReporter  # avoids an import cycle

        _ACTIVE = PlainReporter(stream=sys.stderr)
    return _ACTIVE


def _finish(rep: Reporter, rec: TaskRecord, outcome: Outcome) -> None:
    rec.finished = time.perf_counter()
    rec.outcome = outcome
    rep.task_finished(rec)


@contextmanager
def task(task_id: str, title: str) -> Iterator[Dict[str, Any]]:
    """Run a block as a reported task.

    Yields the task's stats dict; whatever the block stores there is shown
    when the task finishes. Exceptions mark the task failed and propagate.
    """
    rep = get_reporter()
    rec = TaskRecord(task_id, title)
    rep.task_started(rec)
    try:
        yield rec.stats
    except Exception:
        _finish(rep, rec, Outcome.FAILED)
        raise
    _finish(rep, rec, Outcome.OK)
