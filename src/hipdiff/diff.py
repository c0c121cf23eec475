"""Structural diff of two decoded HIP packages.

Three passes, always in this order:

* metadata: scalar comparison of the PACK sub-blocks and the reserved
  directory scalars, one :class:`Section` per group;
* assets: matched by ``id`` (stable across versions);
* layers: matched positionally within each layer type, since layers carry no
  identity of their own. Membership changes that merely reflect an asset
  being added or removed package-wide are suppressed, so the asset pass has
  to run first and hand over its added/removed ID sets.

Positional layer matching cannot tell a reordering, or a new layer inserted
ahead of existing ones of the same type, from a run of per-layer changes.

Every pass returns its entries together with a :class:`DiffCounts` delta;
:func:`diff` sums the deltas of what it keeps, in section order, so totals are
reproducible for identical inputs.
"""

from __future__ import annotations

import zlib
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from .format.model import AssetEntry, LayerEntry, Package
from .logging import get_logger

__all__ = [
    "ChangeKind",
    "DiffOptions",
    "DiffCounts",
    "FieldChange",
    "Section",
    "EntityDiff",
    "DiffResult",
    "diff",
    "SECTION_NAMES",
]

SECTION_NAMES = (
    "version",
    "flags",
    "counts",
    "creation",
    "modification",
    "platform",
    "misc_info",
)


class ChangeKind(Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


@dataclass(slots=True, frozen=True)
class DiffOptions:
    # Skip metadata sections and layers.
    asset_only: bool = False
    # List differing fields of changed assets instead of naming them only.
    detailed: bool = False
    # Compare stored checksums instead of payload bytes.
    trust_checksums: bool = False
    include_offsets: bool = False
    include_pluses: bool = False


@dataclass(slots=True, frozen=True)
class DiffCounts:
    additions: int = 0
    deletions: int = 0
    modifications: int = 0

    def __add__(self, other: "DiffCounts") -> "DiffCounts":
        return DiffCounts(
            self.additions + other.additions,
            self.deletions + other.deletions,
            self.modifications + other.modifications,
        )

    @property
    def total(self) -> int:
        return self.additions + self.deletions + self.modifications

    @classmethod
    def one(cls, kind: ChangeKind) -> "DiffCounts":
        return cls.tally([kind])

    @classmethod
    def tally(cls, kinds: Sequence[ChangeKind]) -> "DiffCounts":
        return cls(
            additions=sum(1 for k in kinds if k is ChangeKind.ADDED),
            deletions=sum(1 for k in kinds if k is ChangeKind.REMOVED),
            modifications=sum(1 for k in kinds if k is ChangeKind.CHANGED),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "additions": self.additions,
            "deletions": self.deletions,
            "modifications": self.modifications,
        }


@dataclass(slots=True, frozen=True)
class FieldChange:
    field: str
    kind: ChangeKind
    before: str = ""
    after: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "kind": self.kind.value,
            "before": self.before,
            "after": self.after,
        }


@dataclass(slots=True, frozen=True)
class Section:
    name: str
    entries: Tuple[FieldChange, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "entries": [e.to_dict() for e in self.entries],
        }


Entity = Union[AssetEntry, LayerEntry]


@dataclass(slots=True, frozen=True)
class EntityDiff:
    """One added, removed or changed asset or layer.

    ``key`` is the asset ID or the layer type; ``ordinal`` is the layer's
    position among layers of the same type (always 0 for assets).
    """

    kind: ChangeKind
    key: int
    before: Optional[Entity]
    after: Optional[Entity]
    before_text: str
    after_text: str
    fields: Tuple[FieldChange, ...] = ()
    ordinal: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "key": self.key,
            "ordinal": self.ordinal,
            "before_text": self.before_text,
            "after_text": self.after_text,
            "before": asdict(self.before) if self.before is not None else None,
            "after": asdict(self.after) if self.after is not None else None,
            "fields": [f.to_dict() for f in self.fields],
        }


@dataclass(slots=True, frozen=True)
class DiffResult:
    sections: Tuple[Section, ...] = ()
    asset_diffs: Tuple[EntityDiff, ...] = ()
    layer_diffs: Tuple[EntityDiff, ...] = ()
    counts: DiffCounts = field(default_factory=DiffCounts)

    @property
    def is_empty(self) -> bool:
        return (
            self.counts.total == 0
            and not self.asset_diffs
            and not self.layer_diffs
            and not any(s.entries for s in self.sections)
        )

    def section(self, name: str) -> Optional[Section]:
        for s in self.sections:
            if s.name == name:
                return s
        return None

    def assets_with(self, kind: ChangeKind) -> List[EntityDiff]:
        return [d for d in self.asset_diffs if d.kind is kind]

    def layers_with(self, kind: ChangeKind) -> List[EntityDiff]:
        return [d for d in self.layer_diffs if d.kind is kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sections": [s.to_dict() for s in self.sections],
            "assets": [d.to_dict() for d in self.asset_diffs],
            "layers": [d.to_dict() for d in self.layer_diffs],
            "summary": self.counts.to_dict(),
        }


# Formatting -------------------------------------------------------------#

Formatter = Callable[[Any], str]


def _hex(value: int) -> str:
    return f"0x{value:X}"


def _hex8(value: int) -> str:
    return f"0x{value:08X}"


def _dec(value: int) -> str:
    return str(value)


def _quoted(value: str) -> str:
    return f'"{value}"'


def _strip_newline(text: str) -> str:
    # PCRT notes are written with a trailing newline by some tools.
    return text[:-1] if text.endswith("\n") else text


def _changes(
    pairs: Sequence[Tuple[str, Any, Any, Formatter]],
) -> List[FieldChange]:
    return [
        FieldChange(name, ChangeKind.CHANGED, fmt(before), fmt(after))
        for name, before, after, fmt in pairs
        if before != after
    ]


def _section(name: str, entries: Sequence[FieldChange]) -> Tuple[Section, DiffCounts]:
    return Section(name, tuple(entries)), DiffCounts.tally(
        [e.kind for e in entries]
    )


# Metadata ---------------------------------------------------------------#


def _diff_platform(base: Package, mod: Package) -> List[FieldChange]:
    old, new = base.platform, mod.platform
    if old is None and new is None:
        return []
    if new is None:
        return [FieldChange("id", ChangeKind.REMOVED, before=_hex8(old.id))] + [
            FieldChange(f"strings[{i}]", ChangeKind.REMOVED, before=_quoted(s))
            for i, s in enumerate(old.strings)
        ]
    if old is None:
        return [FieldChange("id", ChangeKind.ADDED, after=_hex8(new.id))] + [
            FieldChange(f"strings[{i}]", ChangeKind.ADDED, after=_quoted(s))
            for i, s in enumerate(new.strings)
        ]
    out = _changes([("id", old.id, new.id, _hex8)])
    for i in range(max(len(old.strings), len(new.strings))):
        name = f"strings[{i}]"
        if i >= len(old.strings):
            out.append(
                FieldChange(name, ChangeKind.ADDED, after=_quoted(new.strings[i]))
            )
        elif i >= len(new.strings):
            out.append(
                FieldChange(name, ChangeKind.REMOVED, before=_quoted(old.strings[i]))
            )
        elif old.strings[i] != new.strings[i]:
            out.append(
                FieldChange(
                    name,
                    ChangeKind.CHANGED,
                    _quoted(old.strings[i]),
                    _quoted(new.strings[i]),
                )
            )
    return out


def _diff_metadata(
    base: Package, mod: Package
) -> Tuple[Tuple[Section, ...], DiffCounts]:
    bv, mv = base.version, mod.version
    bc, mc = base.counts, mod.counts
    bm, mm = base.misc_info, mod.misc_info
    groups: Dict[str, List[FieldChange]] = {
        "version": _changes(
            [
                ("sub", bv.sub, mv.sub, _hex),
                ("client", bv.client, mv.client, _hex),
                ("compat", bv.compat, mv.compat, _hex),
            ]
        ),
        "flags": _changes([("flags", base.flags, mod.flags, _hex)]),
        "counts": _changes(
            [
                (name, getattr(bc, name), getattr(mc, name), _dec)
                for name in (
                    "asset_count",
                    "layer_count",
                    "max_asset_size",
                    "max_layer_size",
                    "max_xform_asset_size",
                )
            ]
        ),
        "creation": _changes(
            [
                ("time", base.creation.time, mod.creation.time, _dec),
                (
                    "note",
                    _strip_newline(base.creation.note),
                    _strip_newline(mod.creation.note),
                    _quoted,
                ),
            ]
        ),
        "modification": _changes(
            [("time", base.modification.time, mod.modification.time, _dec)]
        ),
        "platform": _diff_platform(base, mod),
        "misc_info": _changes(
            [
                ("asset_info", bm.asset_info, mm.asset_info, _dec),
                ("layer_info", bm.layer_info, mm.layer_info, _dec),
                ("stream_info", bm.stream_info, mm.stream_info, _dec),
            ]
        ),
    }
    sections: List[Section] = []
    counts = DiffCounts()
    for name in SECTION_NAMES:
        section, delta = _section(name, groups[name])
        sections.append(section)
        counts += delta
    return tuple(sections), counts


# Assets -----------------------------------------------------------------#


@dataclass(slots=True, frozen=True)
class _AssetPass:
    entries: Tuple[EntityDiff, ...]
    counts: DiffCounts
    added_ids: FrozenSet[int]
    removed_ids: FrozenSet[int]


def _asset_label(asset: AssetEntry) -> str:
    return asset.name or _hex8(asset.id)


def _asset_listing(asset: AssetEntry) -> List[Tuple[str, str]]:
    d = asset.debug
    return [
        ("id", _hex8(asset.id)),
        ("type", _hex8(asset.type)),
        ("offset", _dec(asset.offset)),
        ("size", _dec(asset.size)),
        ("plus", _dec(asset.plus)),
        ("flags", _hex8(asset.flags)),
        ("align", _dec(d.align)),
        ("name", d.name),
        ("filename", d.filename),
        ("checksum", _hex8(d.checksum)),
    ]


def _payload_text(pkg: Package, asset: AssetEntry, trust_checksums: bool) -> str:
    if trust_checksums:
        return f"checksum {_hex8(asset.debug.checksum)}"
    crc = zlib.crc32(pkg.payload(asset)) & 0xFFFFFFFF
    return f"{asset.size} bytes crc32={_hex8(crc)}"


def _payload_changed(
    base: Package,
    old: AssetEntry,
    mod: Package,
    new: AssetEntry,
    trust_checksums: bool,
) -> bool:
    if trust_checksums:
        return old.debug.checksum != new.debug.checksum
    if old.size != new.size:
        return True
    return base.payload(old) != mod.payload(new)


def _asset_changes(
    base: Package,
    old: AssetEntry,
    mod: Package,
    new: AssetEntry,
    options: DiffOptions,
) -> List[FieldChange]:
    assert old.id == new.id, "matched assets must share an ID"
    od, nd = old.debug, new.debug
    pairs: List[Tuple[str, Any, Any, Formatter]] = [
        ("type", old.type, new.type, _hex8)
    ]
    if options.include_offsets:
        pairs.append(("offset", old.offset, new.offset, _dec))
    pairs.append(("size", old.size, new.size, _dec))
    if options.include_pluses:
        pairs.append(("plus", old.plus, new.plus, _dec))
    pairs.append(("flags", old.flags, new.flags, _hex8))
    out = _changes(pairs)
    if _payload_changed(base, old, mod, new, options.trust_checksums):
        out.append(
            FieldChange(
                "data",
                ChangeKind.CHANGED,
                _payload_text(base, old, options.trust_checksums),
                _payload_text(mod, new, options.trust_checksums),
            )
        )
    out.extend(
        _changes(
            [
                ("align", od.align, nd.align, _dec),
                ("name", od.name, nd.name, str),
                ("filename", od.filename, nd.filename, str),
                ("checksum", od.checksum, nd.checksum, _hex8),
            ]
        )
    )
    return out


def _diff_assets(base: Package, mod: Package, options: DiffOptions) -> _AssetPass:
    old_index = base.asset_index()
    new_index = mod.asset_index()
    entries: List[EntityDiff] = []
    added: List[int] = []
    removed: List[int] = []
    for asset_id in sorted(old_index.keys() | new_index.keys()):
        old = old_index.get(asset_id)
        new = new_index.get(asset_id)
        if old is None:
            assert new is not None
            listing = (
                tuple(
                    FieldChange(name, ChangeKind.ADDED, after=text)
                    for name, text in _asset_listing(new)
                )
                if options.detailed
                else ()
            )
            entries.append(
                EntityDiff(
                    ChangeKind.ADDED,
                    asset_id,
                    None,
                    new,
                    "",
                    _asset_label(new),
                    listing,
                )
            )
            added.append(asset_id)
        elif new is None:
            listing = (
                tuple(
                    FieldChange(name, ChangeKind.REMOVED, before=text)
                    for name, text in _asset_listing(old)
                )
                if options.detailed
                else ()
            )
            entries.append(
                EntityDiff(
                    ChangeKind.REMOVED,
                    asset_id,
                    old,
                    None,
                    _asset_label(old),
                    "",
                    listing,
                )
            )
            removed.append(asset_id)
        else:
            changes = _asset_changes(base, old, mod, new, options)
            if changes:
                entries.append(
                    EntityDiff(
                        ChangeKind.CHANGED,
                        asset_id,
                        old,
                        new,
                        _asset_label(old),
                        _asset_label(new),
                        tuple(changes) if options.detailed else (),
                    )
                )
    return _AssetPass(
        entries=tuple(entries),
        counts=DiffCounts.tally([e.kind for e in entries]),
        added_ids=frozenset(added),
        removed_ids=frozenset(removed),
    )


# Layers -----------------------------------------------------------------#


def _group_layers(layers: Sequence[LayerEntry]) -> Dict[int, List[LayerEntry]]:
    groups: Dict[int, List[LayerEntry]] = {}
    for layer in layers:
        groups.setdefault(layer.type, []).append(layer)
    return groups


def _member_label(index: Dict[int, AssetEntry], asset_id: int) -> str:
    asset = index.get(asset_id)
    return _asset_label(asset) if asset is not None else _hex8(asset_id)


def _layer_label(layer: LayerEntry, ordinal: int) -> str:
    return f"layer {layer.type} #{ordinal}"


def _layer_listing(
    layer: LayerEntry,
    kind: ChangeKind,
    index: Dict[int, AssetEntry],
    skip_ids: FrozenSet[int],
) -> Tuple[FieldChange, ...]:
    def entry(name: str, text: str) -> FieldChange:
        if kind is ChangeKind.ADDED:
            return FieldChange(name, kind, after=text)
        return FieldChange(name, kind, before=text)

    out = [entry("type", _dec(layer.type))]
    out.extend(
        entry("asset", _member_label(index, asset_id))
        for asset_id in layer.asset_ids
        if asset_id not in skip_ids
    )
    out.append(entry("misc", _dec(layer.debug.misc)))
    return tuple(out)


def _diff_layer_pair(
    old: LayerEntry,
    new: LayerEntry,
    ordinal: int,
    old_index: Dict[int, AssetEntry],
    new_index: Dict[int, AssetEntry],
    assets: _AssetPass,
) -> Tuple[Optional[EntityDiff], DiffCounts]:
    assert old.type == new.type, "paired layers must share a type"
    old_ids = set(old.asset_ids)
    new_ids = set(new.asset_ids)
    joined = {
        i for i in new_ids - old_ids if i not in assets.added_ids
    }
    left = {
        i for i in old_ids - new_ids if i not in assets.removed_ids
    }
    changes: List[FieldChange] = []
    for asset_id in sorted(joined | left):
        if asset_id in joined:
            changes.append(
                FieldChange(
                    "asset",
                    ChangeKind.ADDED,
                    after=_member_label(new_index, asset_id),
                )
            )
        else:
            changes.append(
                FieldChange(
                    "asset",
                    ChangeKind.REMOVED,
                    before=_member_label(old_index, asset_id),
                )
            )
    changes.extend(_changes([("misc", old.debug.misc, new.debug.misc, _dec)]))
    if not changes:
        return None, DiffCounts()
    # The layer itself counts as one modification; each membership line
    # counts as an addition or deletion on top of that.
    delta = DiffCounts(
        additions=len(joined), deletions=len(left), modifications=1
    )
    return (
        EntityDiff(
            ChangeKind.CHANGED,
            old.type,
            old,
            new,
            _layer_label(old, ordinal),
            _layer_label(new, ordinal),
            tuple(changes),
            ordinal,
        ),
        delta,
    )


def _diff_layers(
    base: Package, mod: Package, assets: _AssetPass
) -> Tuple[Tuple[EntityDiff, ...], DiffCounts]:
    old_groups = _group_layers(base.layers)
    new_groups = _group_layers(mod.layers)
    old_index = base.asset_index()
    new_index = mod.asset_index()
    entries: List[EntityDiff] = []
    counts = DiffCounts()
    for layer_type in sorted(old_groups.keys() | new_groups.keys()):
        olds = old_groups.get(layer_type, [])
        news = new_groups.get(layer_type, [])
        for ordinal in range(max(len(olds), len(news))):
            old = olds[ordinal] if ordinal < len(olds) else None
            new = news[ordinal] if ordinal < len(news) else None
            if old is None:
                entry: Optional[EntityDiff] = EntityDiff(
                    ChangeKind.ADDED,
                    layer_type,
                    None,
                    new,
                    "",
                    _layer_label(new, ordinal),
                    _layer_listing(
                        new, ChangeKind.ADDED, new_index, assets.added_ids
                    ),
                    ordinal,
                )
                delta = DiffCounts.one(ChangeKind.ADDED)
            elif new is None:
                entry = EntityDiff(
                    ChangeKind.REMOVED,
                    layer_type,
                    old,
                    None,
                    _layer_label(old, ordinal),
                    "",
                    _layer_listing(
                        old, ChangeKind.REMOVED, old_index, assets.removed_ids
                    ),
                    ordinal,
                )
                delta = DiffCounts.one(ChangeKind.REMOVED)
            else:
                entry, delta = _diff_layer_pair(
                    old, new, ordinal, old_index, new_index, assets
                )
            if entry is not None:
                entries.append(entry)
                counts += delta
    return tuple(entries), counts


# Entry point ------------------------------------------------------------#


def diff(
    baseline: Package,
    modified: Package,
    options: Optional[DiffOptions] = None,
) -> DiffResult:
    """Compare two packages; ``baseline`` is the "before" side."""
    options = options or DiffOptions()
    logger = get_logger()
    counts = DiffCounts()
    sections: Tuple[Section, ...] = ()
    if not options.asset_only:
        sections, delta = _diff_metadata(baseline, modified)
        counts += delta
    assets = _diff_assets(baseline, modified, options)
    counts += assets.counts
    layer_diffs: Tuple[EntityDiff, ...] = ()
    if not options.asset_only:
        layer_diffs, delta = _diff_layers(baseline, modified, assets)
        counts += delta
    logger.debug(
        "diff: %d asset entries, %d layer entries (added_ids=%d removed_ids=%d)",
        len(assets.entries),
        len(layer_diffs),
        len(assets.added_ids),
        len(assets.removed_ids),
    )
    return DiffResult(
        sections=sections,
        asset_diffs=assets.entries,
        layer_diffs=layer_diffs,
        counts=counts,
    )
