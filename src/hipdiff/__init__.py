"""hipdiff: decode HIP game asset packages and diff them structurally."""

from .format import DecodeError, HipError, Package, decode
from .diff import ChangeKind, DiffOptions, DiffResult, diff

__version__ = "1.0.0"

__all__ = [
    "decode",
    "diff",
    "Package",
    "DiffOptions",
    "DiffResult",
    "ChangeKind",
    "HipError",
    "DecodeError",
    "__version__",
]
