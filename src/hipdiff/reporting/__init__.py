"""Pluggable status output for the CLI and the high-level API."""

import sys

from .base import (
    STAT_KEYS,
    Outcome,
    Reporter,
    TaskRecord,
    get_reporter,
    get_verbosity,
    set_reporter,
    set_verbosity,
    summary_line,
    task,
    task_line,
)
from .jsonl import JsonLinesReporter
from .plain import PlainReporter
from .rich_reporter import RichReporter
from .silent import SilentReporter

REPORTER_CHOICES = ("plain", "rich", "json", "silent")


def make_reporter(name: str) -> Reporter:
    """Build the backend named on the command line."""
    if name == "json":
        return JsonLinesReporter()
    if name == "silent":
        return SilentReporter()
    if name == "rich" and sys.stderr.isatty():
        return RichReporter()
    return PlainReporter()


__all__ = [
    "Outcome",
    "Reporter",
    "TaskRecord",
    "STAT_KEYS",
    "task_line",
    "summary_line",
    "get_reporter",
    "set_reporter",
    "get_verbosity",
    "set_verbosity",
    "task",
    "PlainReporter",
    "JsonLinesReporter",
    "SilentReporter",
    "RichReporter",
    "REPORTER_CHOICES",
    "make_reporter",
]
