"""Decode a HIP byte stream into a :class:`~hipdiff.format.model.Package`.

The decoder is a tag-dispatch walk over :class:`BlockReader`. Each level
handles the tags it knows; anything else is skipped by ``exit_block``
seeking to the end of the region, which is also what keeps newer files with
extra trailing fields readable.

Expected layout::

    HIPA                        marker, must come first
    PACK
      PVER PFLG PCNT PCRT PMOD PLAT
    DICT
      ATOC
        AINF
        AHDR [ADBG]  x asset_count
      LTOC
        LINF
        LHDR [LDBG]  x layer_count (asset IDs inline)
    STRM
      DHDR
      DPAK                      pad length, padding, payload bytes

Decoding runs in a single forward pass; any failure raises a
:class:`DecodeError` and no partially built package is returned.
"""

from __future__ import annotations

from typing import BinaryIO, Callable, Dict, Iterator, List, Optional, Union

from ..logging import get_logger
from .constants import (
    STRING_SIZE,
    TAG_ADBG,
    TAG_AHDR,
    TAG_AINF,
    TAG_ATOC,
    TAG_DHDR,
    TAG_DICT,
    TAG_DPAK,
    TAG_HIPA,
    TAG_LDBG,
    TAG_LHDR,
    TAG_LINF,
    TAG_LTOC,
    TAG_PACK,
    TAG_PCNT,
    TAG_PCRT,
    TAG_PFLG,
    TAG_PLAT,
    TAG_PMOD,
    TAG_PVER,
    TAG_STRM,
    tag_name,
)
from .errors import (
    E_BLOCK_OVERRUN,
    E_COUNT_MISMATCH,
    E_DUPLICATE_ASSET_ID,
    E_MISSING_MARKER,
    structure_error,
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
from .reader import BlockReader

__all__ = ["PackageDecoder", "decode"]

ByteSource = Union[bytes, bytearray, memoryview, BinaryIO]


class PackageDecoder:
    def __init__(self, reader: BlockReader):
        self._r = reader
        self._log = get_logger()
        self._version = Version()
        self._flags = 0
        self._counts = Counts()
        self._creation = Creation()
        self._modification = Modification()
        self._platform: Optional[Platform] = None
        self._asset_info = 0
        self._layer_info = 0
        self._stream_info = 0
        self._assets: List[AssetEntry] = []
        self._layers: List[LayerEntry] = []
        self._data = b""
        self._data_offset = 0
        self._data_padding = 0

    # Walk helpers -----------------------------------------------------------
    def _blocks(self) -> Iterator[int]:
        for tag in self._r.children():
            self._log.debug(
                "%s%s (%d bytes)",
                "  " * (self._r.depth - 1),
                tag_name(tag),
                self._r.remaining(),
            )
            yield tag

    def _walk(self, handlers: Dict[int, Callable[[], None]]) -> None:
        for tag in self._blocks():
            handler = handlers.get(tag)
            if handler is not None:
                handler()

    # Entry point ------------------------------------------------------------
    def decode(self) -> Package:
        handlers = {
            TAG_PACK: lambda: self._walk(self._pack_handlers()),
            TAG_DICT: self._read_dict,
            TAG_STRM: lambda: self._walk(
                {TAG_DHDR: self._read_dhdr, TAG_DPAK: self._read_dpak}
            ),
        }
        valid = False
        for tag in self._blocks():
            if tag == TAG_HIPA:
                valid = True
            elif not valid:
                raise structure_error(
                    E_MISSING_MARKER,
                    f"Not a HIP package: first block is {tag_name(tag)}, expected HIPA",
                    self._r.context(),
                )
            elif tag in handlers:
                handlers[tag]()
        if not valid:
            raise structure_error(
                E_MISSING_MARKER, "Not a HIP package: empty stream"
            )
        return self._finish()

    # PACK -------------------------------------------------------------------
    def _pack_handlers(self) -> Dict[int, Callable[[], None]]:
        return {
            TAG_PVER: self._read_pver,
            TAG_PFLG: self._read_pflg,
            TAG_PCNT: self._read_pcnt,
            TAG_PCRT: self._read_pcrt,
            TAG_PMOD: self._read_pmod,
            TAG_PLAT: self._read_plat,
        }

    def _read_pver(self) -> None:
        r = self._r
        self._version = Version(r.read_u32(), r.read_u32(), r.read_u32())

    def _read_pflg(self) -> None:
        self._flags = self._r.read_u32()

    def _read_pcnt(self) -> None:
        r = self._r
        self._counts = Counts(*(r.read_u32() for _ in range(5)))

    def _read_pcrt(self) -> None:
        r = self._r
        time = r.read_u32()
        self._creation = Creation(time, r.read_bounded_string(STRING_SIZE))

    def _read_pmod(self) -> None:
        self._modification = Modification(self._r.read_u32())

    def _read_plat(self) -> None:
        r = self._r
        platform_id = r.read_u32()
        strings: List[str] = []
        while r.remaining() > 0:
            strings.append(r.read_bounded_string(STRING_SIZE))
        self._platform = Platform(platform_id, tuple(strings))

    # DICT -------------------------------------------------------------------
    def _read_dict(self) -> None:
        self._walk({TAG_ATOC: self._read_atoc, TAG_LTOC: self._read_ltoc})

    def _read_atoc(self) -> None:
        self._assets = []
        self._walk({TAG_AINF: self._read_ainf, TAG_AHDR: self._read_ahdr})
        self._check_count("AHDR", len(self._assets), self._counts.asset_count)

    def _read_ainf(self) -> None:
        self._asset_info = self._r.read_u32()

    def _read_ahdr(self) -> None:
        r = self._r
        asset_id, asset_type, offset, size, plus, flags = (
            r.read_u32() for _ in range(6)
        )
        debug = AssetDebug()
        for tag in self._blocks():
            if tag == TAG_ADBG:
                debug = AssetDebug(
                    align=r.read_u32(),
                    name=r.read_bounded_string(STRING_SIZE),
                    filename=r.read_bounded_string(STRING_SIZE),
                    checksum=r.read_u32(),
                )
        self._assets.append(
            AssetEntry(asset_id, asset_type, offset, size, plus, flags, debug)
        )

    def _read_ltoc(self) -> None:
        self._layers = []
        self._walk({TAG_LINF: self._read_linf, TAG_LHDR: self._read_lhdr})
        self._check_count("LHDR", len(self._layers), self._counts.layer_count)

    def _read_linf(self) -> None:
        self._layer_info = self._r.read_u32()

    def _read_lhdr(self) -> None:
        r = self._r
        layer_type = r.read_u32()
        count = r.read_u32()
        asset_ids = tuple(r.read_u32() for _ in range(count))
        debug = LayerDebug()
        for tag in self._blocks():
            if tag == TAG_LDBG:
                debug = LayerDebug(r.read_u32())
        self._layers.append(LayerEntry(layer_type, asset_ids, debug))

    # STRM -------------------------------------------------------------------
    def _read_dhdr(self) -> None:
        self._stream_info = self._r.read_u32()

    def _read_dpak(self) -> None:
        if self._counts.asset_count == 0:
            return
        r = self._r
        self._data_padding = r.read_u32()
        r.skip(self._data_padding)
        self._data_offset = r.tell()
        size = r.region_end() - self._data_offset
        if size < 0:
            raise structure_error(
                E_BLOCK_OVERRUN,
                f"DPAK padding of {self._data_padding} bytes runs past the block",
                r.context(),
            )
        self._data = r.read_bytes(size)

    # Validation -------------------------------------------------------------
    def _check_count(self, what: str, found: int, declared: int) -> None:
        if found != declared:
            raise structure_error(
                E_COUNT_MISMATCH,
                f"Found {found} {what} blocks but PCNT declares {declared}",
                self._r.context(),
            )

    def _finish(self) -> Package:
        counts = self._counts
        self._check_count("AHDR", len(self._assets), counts.asset_count)
        self._check_count("LHDR", len(self._layers), counts.layer_count)
        layered = sum(len(layer.asset_ids) for layer in self._layers)
        if layered != counts.asset_count:
            raise structure_error(
                E_COUNT_MISMATCH,
                f"Layers reference {layered} assets but PCNT declares {counts.asset_count}",
            )
        seen = set()
        for asset in self._assets:
            if asset.id in seen:
                raise structure_error(
                    E_DUPLICATE_ASSET_ID,
                    f"Asset ID 0x{asset.id:08X} appears more than once",
                )
            seen.add(asset.id)
        return Package(
            version=self._version,
            flags=self._flags,
            counts=counts,
            creation=self._creation,
            modification=self._modification,
            platform=self._platform,
            misc_info=MiscInfo(
                self._asset_info, self._layer_info, self._stream_info
            ),
            assets=tuple(self._assets),
            layers=tuple(self._layers),
            data=self._data,
            data_offset=self._data_offset,
            data_padding=self._data_padding,
        )


def decode(source: ByteSource) -> Package:
    """Decode a HIP package from bytes or a seekable binary stream."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        reader = BlockReader.from_bytes(source)
    else:
        reader = BlockReader(source)
    return PackageDecoder(reader).decode()
