"""Diff option loading (JSON/YAML) for hipdiff."""

from __future__ import annotations
from dataclasses import fields, replace
from pathlib import Path
from typing import Any
import json

import yaml

from .diff import DiffOptions
from .format.errors import config_error

__all__ = ["load_options", "options_from_dict", "merge_options"]

_OPTION_NAMES = tuple(f.name for f in fields(DiffOptions))


def load_options(path: str | Path) -> DiffOptions:
    p = Path(path)
    if not p.exists():
        raise config_error(f"Options file not found: {p}", {"path": str(p)})
    text = p.read_text(encoding="utf-8")
    try:
        if p.suffix.lower() in {".yaml", ".yml"}:
            data: Any = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise config_error(
            f"Cannot parse options file: {e}", {"path": str(p)}
        ) from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise config_error(
            "Root of options file must be a mapping", {"path": str(p)}
        )
    return options_from_dict(data)


def options_from_dict(data: dict[str, Any]) -> DiffOptions:
    bad_keys = [k for k in data if not isinstance(k, str)]
    if bad_keys:
        raise config_error(
            "Option names must be strings", {"keys": [repr(k) for k in bad_keys]}
        )
    unknown = sorted(set(data) - set(_OPTION_NAMES))
    if unknown:
        raise config_error(
            f"Unknown option(s): {', '.join(unknown)}",
            {"allowed": list(_OPTION_NAMES)},
        )
    for key, value in data.items():
        if not isinstance(value, bool):
            raise config_error(
                f"Option '{key}' must be true or false", {"value": value}
            )
    return DiffOptions(**data)


def merge_options(base: DiffOptions, **overrides: bool) -> DiffOptions:
    """Switch on every option whose override is truthy; flags never switch off."""
    enabled = {k: True for k, v in overrides.items() if v}
    unknown = sorted(set(enabled) - set(_OPTION_NAMES))
    if unknown:
        raise config_error(f"Unknown option(s): {', '.join(unknown)}")
    return replace(base, **enabled)
