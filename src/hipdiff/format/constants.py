"""Block tags and limits of the HIP container layout."""

from __future__ import annotations


def fourcc(text: str) -> int:
    """Pack a four character tag into its big-endian u32 value."""
    raw = text.encode("ascii")
    if len(raw) != 4:
        raise ValueError(f"Block tag must be 4 characters: {text!r}")
    return int.from_bytes(raw, "big")


def tag_name(tag: int) -> str:
    raw = (tag & 0xFFFFFFFF).to_bytes(4, "big")
    if all(0x20 <= b < 0x7F for b in raw):
        return raw.decode("ascii")
    return f"0x{tag:08X}"


MAX_STACK_DEPTH = 8
STRING_SIZE = 32
BLOCK_HEADER_SIZE = 8

# Top level
TAG_HIPA = fourcc("HIPA")
TAG_PACK = fourcc("PACK")
TAG_DICT = fourcc("DICT")
TAG_STRM = fourcc("STRM")

# PACK children
TAG_PVER = fourcc("PVER")
TAG_PFLG = fourcc("PFLG")
TAG_PCNT = fourcc("PCNT")
TAG_PCRT = fourcc("PCRT")
TAG_PMOD = fourcc("PMOD")
TAG_PLAT = fourcc("PLAT")

# DICT children
TAG_ATOC = fourcc("ATOC")
TAG_AINF = fourcc("AINF")
TAG_AHDR = fourcc("AHDR")
TAG_ADBG = fourcc("ADBG")
TAG_LTOC = fourcc("LTOC")
TAG_LINF = fourcc("LINF")
TAG_LHDR = fourcc("LHDR")
TAG_LDBG = fourcc("LDBG")

# STRM children
TAG_DHDR = fourcc("DHDR")
TAG_DPAK = fourcc("DPAK")

__all__ = [
    "fourcc",
    "tag_name",
    "MAX_STACK_DEPTH",
    "STRING_SIZE",
    "BLOCK_HEADER_SIZE",
    "TAG_HIPA",
    "TAG_PACK",
    "TAG_DICT",
    "TAG_STRM",
    "TAG_PVER",
    "TAG_PFLG",
    "TAG_PCNT",
    "TAG_PCRT",
    "TAG_PMOD",
    "TAG_PLAT",
    "TAG_ATOC",
    "TAG_AINF",
    "TAG_AHDR",
    "TAG_ADBG",
    "TAG_LTOC",
    "TAG_LINF",
    "TAG_LHDR",
    "TAG_LDBG",
    "TAG_DHDR",
    "TAG_DPAK",
]
