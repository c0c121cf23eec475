"""Sequential reader for the nested block layout of HIP packages.

Every block is ``tag:u32 | length:u32 | payload`` (big-endian). The reader
keeps a stack of open blocks; :meth:`BlockReader.enter_block` returns
``None`` once the innermost region is exhausted and raises on a genuine read
failure, so "no more children" and "the stream is broken" never share a
return value.
"""

from __future__ import annotations

import io
import os
import struct
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, Iterator, List, Optional

from .constants import BLOCK_HEADER_SIZE, MAX_STACK_DEPTH, STRING_SIZE, tag_name
from .errors import (
    E_BLOCK_OVERRUN,
    E_DEPTH_EXCEEDED,
    read_error,
    structure_error,
)

__all__ = ["Block", "BlockReader"]

_U32 = struct.Struct(">I")
_BLOCK_HEADER = struct.Struct(">II")


@dataclass(slots=True, frozen=True)
class Block:
    tag: int
    end: int


class BlockReader:
    def __init__(self, stream: BinaryIO, *, max_depth: int = MAX_STACK_DEPTH):
        self._stream = stream
        self._max_depth = max_depth
        self._stack: List[Block] = []
        start = stream.tell()
        self._length = stream.seek(0, os.SEEK_END)
        stream.seek(start)

    @classmethod
    def from_bytes(cls, data: bytes, **kwargs: Any) -> "BlockReader":
        return cls(io.BytesIO(bytes(data)), **kwargs)

    # State ------------------------------------------------------------------
    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def path(self) -> str:
        return "/".join(tag_name(b.tag) for b in self._stack)

    @property
    def current(self) -> Optional[Block]:
        return self._stack[-1] if self._stack else None

    def tell(self) -> int:
        return self._stream.tell()

    def region_end(self) -> int:
        return self._stack[-1].end if self._stack else self._length

    def remaining(self) -> int:
        return max(0, self.region_end() - self.tell())

    def context(self) -> Dict[str, Any]:
        return {
            "block": self.path or "<root>",
            "depth": self.depth,
            "position": self.tell(),
        }

    # Primitives -------------------------------------------------------------
    def read_bytes(self, size: int) -> bytes:
        try:
            raw = self._stream.read(size)
        except OSError as e:
            raise read_error(f"Stream read failed: {e}", self.context()) from e
        if len(raw) != size:
            raise read_error(
                f"Unexpected end of stream: wanted {size} bytes, got {len(raw)}",
                self.context(),
            )
        return raw

    def skip(self, size: int) -> None:
        self._stream.seek(size, os.SEEK_CUR)

    def read_u32(self) -> int:
        return _U32.unpack(self.read_bytes(_U32.size))[0]

    def read_bounded_string(self, max_len: int = STRING_SIZE) -> str:
        """Read a NUL-terminated string stored in at most ``max_len`` bytes.

        Characters beyond ``max_len - 1`` are consumed up to the terminator
        and dropped. The field is padded so the next one starts on an even
        offset.
        """
        kept = bytearray()
        consumed = 0
        terminated = False
        while consumed < max_len:
            c = self.read_bytes(1)[0]
            consumed += 1
            if c == 0:
                terminated = True
                break
            kept.append(c)
        while not terminated:
            consumed += 1
            terminated = self.read_bytes(1)[0] == 0
        if consumed & 1:
            self.skip(1)
        return bytes(kept[: max_len - 1]).decode("latin-1")

    # Blocks -----------------------------------------------------------------
    def enter_block(self) -> Optional[int]:
        if self.tell() >= self.region_end():
            return None
        if len(self._stack) >= self._max_depth:
            raise structure_error(
                E_DEPTH_EXCEEDED,
                f"Block nesting deeper than {self._max_depth}",
                self.context(),
            )
        tag, length = _BLOCK_HEADER.unpack(self.read_bytes(BLOCK_HEADER_SIZE))
        end = self.tell() + length
        if end > self._length:
            raise read_error(
                f"Block {tag_name(tag)} declares {length} bytes past the end of the stream",
                self.context(),
            )
        if self._stack and end > self._stack[-1].end:
            raise structure_error(
                E_BLOCK_OVERRUN,
                f"Block {tag_name(tag)} runs past the end of its parent",
                self.context(),
            )
        self._stack.append(Block(tag, end))
        return tag

    def exit_block(self) -> None:
        blk = self._stack.pop()
        self._stream.seek(blk.end)

    def children(self) -> Iterator[int]:
        """Yield the tag of each child block, closing it once the caller is done."""
        while True:
            tag = self.enter_block()
            if tag is None:
                return
            yield tag
            self.exit_block()
