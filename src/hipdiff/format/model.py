"""Dataclass models for a decoded HIP package."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(slots=True, frozen=True)
class Version:
    sub: int = 0
    client: int = 0
    compat: int = 0


@dataclass(slots=True, frozen=True)
class Counts:
    asset_count: int = 0
    layer_count: int = 0
    max_asset_size: int = 0
    max_layer_size: int = 0
    max_xform_asset_size: int = 0


@dataclass(slots=True, frozen=True)
class Creation:
    time: int = 0
    note: str = ""


@dataclass(slots=True, frozen=True)
class Modification:
    time: int = 0


@dataclass(slots=True, frozen=True)
class Platform:
    id: int = 0
    strings: Tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class MiscInfo:
    # AINF, LINF and DHDR scalars; reserved by the format.
    asset_info: int = 0
    layer_info: int = 0
    stream_info: int = 0


@dataclass(slots=True, frozen=True)
class AssetDebug:
    align: int = 0
    name: str = ""
    filename: str = ""
    checksum: int = 0


@dataclass(slots=True, frozen=True)
class AssetEntry:
    id: int
    type: int = 0
    offset: int = 0
    size: int = 0
    plus: int = 0
    flags: int = 0
    debug: AssetDebug = field(default_factory=AssetDebug)

    @property
    def name(self) -> str:
        return self.debug.name


@dataclass(slots=True, frozen=True)
class LayerDebug:
    misc: int = 0


@dataclass(slots=True, frozen=True)
class LayerEntry:
    type: int
    asset_ids: Tuple[int, ...] = ()
    debug: LayerDebug = field(default_factory=LayerDebug)


@dataclass(slots=True, frozen=True)
class Package:
    version: Version = field(default_factory=Version)
    flags: int = 0
    counts: Counts = field(default_factory=Counts)
    creation: Creation = field(default_factory=Creation)
    modification: Modification = field(default_factory=Modification)
    platform: Optional[Platform] = None
    misc_info: MiscInfo = field(default_factory=MiscInfo)
    assets: Tuple[AssetEntry, ...] = ()
    layers: Tuple[LayerEntry, ...] = ()
    data: bytes = b""
    # Stream offset of data[0]; asset offsets are relative to the stream.
    data_offset: int = 0
    data_padding: int = 0

    def payload(self, asset: AssetEntry) -> memoryview:
        start = asset.offset - self.data_offset
        if start < 0:
            return memoryview(b"")
        return memoryview(self.data)[start : start + asset.size]

    def asset_index(self) -> Dict[int, AssetEntry]:
        return {a.id: a for a in self.assets}

    def total_layer_assets(self) -> int:
        return sum(len(layer.asset_ids) for layer in self.layers)


__all__ = [
    "Version",
    "Counts",
    "Creation",
    "Modification",
    "Platform",
    "MiscInfo",
    "AssetDebug",
    "AssetEntry",
    "LayerDebug",
    "LayerEntry",
    "Package",
]
