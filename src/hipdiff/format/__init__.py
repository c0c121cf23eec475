"""HIP container decoding: block reader, decoder and data model."""

from .decoder import PackageDecoder, decode
from .errors import (
    ConfigError,
    DecodeError,
    HipError,
    StreamReadError,
    StructureError,
)
from .model import (
    AssetDebug,
    AssetEntry,
    Counts,
    Creation,
    LayerDebug,
    LayerEntry,
    MiscInfo,
    Modification,
    Package,
    Platform,
    Version,
)
from .reader import Block, BlockReader

__all__ = [
    "PackageDecoder",
    "decode",
    "Block",
    "BlockReader",
    "HipError",
    "DecodeError",
    "StreamReadError",
    "StructureError",
    "ConfigError",
    "AssetDebug",
    "AssetEntry",
    "Counts",
    "Creation",
    "LayerDebug",
    "LayerEntry",
    "MiscInfo",
    "Modification",
    "Package",
    "Platform",
    "Version",
]
