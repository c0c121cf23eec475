"""Error definitions for hipdiff."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_READ = "E_READ"
E_DEPTH_EXCEEDED = "E_DEPTH_EXCEEDED"
E_BLOCK_OVERRUN = "E_BLOCK_OVERRUN"
E_COUNT_MISMATCH = "E_COUNT_MISMATCH"
E_MISSING_MARKER = "E_MISSING_MARKER"
E_DUPLICATE_ASSET_ID = "E_DUPLICATE_ASSET_ID"
E_CONFIG = "E_CONFIG"


@dataclass
class HipError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class DecodeError(HipError):
    """A package could not be decoded; no partial result is produced."""


class StreamReadError(DecodeError):
    """The stream ended early or could not be read."""


class StructureError(DecodeError):
    """The stream was readable but its block structure is inconsistent."""


class ConfigError(HipError):
    pass


def read_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> StreamReadError:
    return StreamReadError(code=E_READ, message=message, context=context)


def structure_error(
    code: str, message: str, context: Optional[Dict[str, Any]] = None
) -> StructureError:
    return StructureError(code=code, message=message, context=context)


def config_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> ConfigError:
    return ConfigError(code=E_CONFIG, message=message, context=context)


__all__ = [
    "HipError",
    "DecodeError",
    "StreamReadError",
    "StructureError",
    "ConfigError",
    "read_error",
    "structure_error",
    "config_error",
    "E_READ",
    "E_DEPTH_EXCEEDED",
    "E_BLOCK_OVERRUN",
    "E_COUNT_MISMATCH",
    "E_MISSING_MARKER",
    "E_DUPLICATE_ASSET_ID",
    "E_CONFIG",
]
