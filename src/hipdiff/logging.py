"""Route the ``hipdiff`` stdlib logger into the active reporter.

Library code logs through :func:`get_logger`. The CLI calls
:func:`configure_logging` once it has picked a reporter; until then records
follow the stdlib defaults. DEBUG records are per-block decode traces and
only reach the reporter at ``-vv``.
"""

from __future__ import annotations

import logging

from .reporting import get_reporter

LOGGER_NAME = "hipdiff"
TRACE_VERBOSITY = 2

__all__ = ["LOGGER_NAME", "ReporterHandler", "get_logger", "configure_logging", "step"]


class ReporterHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:
            self.handleError(record)
            return
        rep = get_reporter()
        if record.levelno >= logging.ERROR:
            rep.fail(msg)
        elif record.levelno >= logging.WARNING:
            rep.warn(msg)
        elif record.levelno >= logging.INFO:
            rep.info(msg)
        else:
            rep.trace(msg, level=TRACE_VERBOSITY)


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def configure_logging(verbosity: int = 0) -> None:
    logger = get_logger()
    logger.setLevel(logging.DEBUG if verbosity >= TRACE_VERBOSITY else logging.INFO)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)
    handler = ReporterHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)


def step(message: str) -> None:
    get_reporter().info(f"  -> {message}")
