"""High-level API for hipdiff.

Wraps the two core entry points (:func:`hipdiff.format.decode` and
:func:`hipdiff.diff.diff`) with file handling, reporter tasks and decode / diff
summaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .diff import DiffOptions, DiffResult, diff
from .format.decoder import decode
from .format.inspector import audit_package, describe_package
from .format.model import Package
from .logging import get_logger
from .reporting import get_reporter, task

__all__ = [
    "DiffRequest",
    "load_package",
    "diff_packages",
    "diff_files",
    "inspect_file",
    "describe_package",
    "audit_package",
]


@dataclass(slots=True)
class DiffRequest:
    baseline: Path
    modified: Path
    options: DiffOptions = field(default_factory=DiffOptions)


def load_package(path: str | Path, *, label: Optional[str] = None) -> Package:
    p = Path(path)
    logger = get_logger()
    rep = get_reporter()
    task_id = f"decode.{label or p.stem}"
    with task(task_id, f"Decode {p.name}") as stats:
        with p.open("rb") as f:
            pkg = decode(f)
        stats.update(
            assets=len(pkg.assets), layers=len(pkg.layers), bytes=len(pkg.data)
        )
    for issue in audit_package(pkg):
        logger.warning("%s: %s", p.name, issue)
    rep.summary(
        "decode",
        {
            "file": p.name,
            "assets": len(pkg.assets),
            "layers": len(pkg.layers),
            "data_bytes": len(pkg.data),
        },
    )
    return pkg


def diff_packages(
    baseline: Package,
    modified: Package,
    options: Optional[DiffOptions] = None,
) -> DiffResult:
    rep = get_reporter()
    with task("diff", "Diff packages") as stats:
        result = diff(baseline, modified, options)
        stats.update(result.counts.to_dict())
    rep.summary("diff", result.counts.to_dict())
    return result


def diff_files(request: DiffRequest) -> DiffResult:
    # Decoded sequentially; both must succeed before comparing.
    baseline = load_package(request.baseline, label="baseline")
    modified = load_package(request.modified, label="modified")
    return diff_packages(baseline, modified, request.options)


def inspect_file(path: str | Path) -> tuple[dict, List[str]]:
    """Decode ``path`` and return (summary dict, audit issues)."""
    pkg = load_package(path)
    return describe_package(pkg), audit_package(pkg)
