"""Package inspection utilities.

Public functions:
- describe_package(pkg) -> dict
- audit_package(pkg) -> list[str]

``describe_package`` is a JSON-serialisable summary of the header and the
entry tables. ``audit_package`` reports cross-reference problems the decoder
tolerates (it only checks that the layer membership total adds up).
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict
from typing import Any, Dict, List

from .model import Package

__all__ = ["describe_package", "audit_package"]


def describe_package(pkg: Package) -> Dict[str, Any]:
    layer_types = Counter(layer.type for layer in pkg.layers)
    return {
        "version": asdict(pkg.version),
        "flags": pkg.flags,
        "counts": asdict(pkg.counts),
        "creation": asdict(pkg.creation),
        "modification": asdict(pkg.modification),
        "platform": asdict(pkg.platform) if pkg.platform is not None else None,
        "misc_info": asdict(pkg.misc_info),
        "data": {
            "offset": pkg.data_offset,
            "size": len(pkg.data),
            "padding": pkg.data_padding,
        },
        "assets": [
            {
                "id": a.id,
                "type": a.type,
                "offset": a.offset,
                "size": a.size,
                "flags": a.flags,
                "name": a.debug.name,
                "filename": a.debug.filename,
                "checksum": a.debug.checksum,
            }
            for a in pkg.assets
        ],
        "layers": [
            {
                "type": layer.type,
                "asset_count": len(layer.asset_ids),
                "misc": layer.debug.misc,
            }
            for layer in pkg.layers
        ],
        "layer_types": {str(t): n for t, n in sorted(layer_types.items())},
    }


def audit_package(pkg: Package) -> List[str]:
    issues: List[str] = []
    known = pkg.asset_index()
    owners: Dict[int, int] = {}
    for li, layer in enumerate(pkg.layers):
        for asset_id in layer.asset_ids:
            if asset_id not in known:
                issues.append(
                    f"Layer {li} (type {layer.type}) references unknown asset 0x{asset_id:08X}"
                )
            if asset_id in owners:
                issues.append(
                    f"Asset 0x{asset_id:08X} is listed by layers {owners[asset_id]} and {li}"
                )
            else:
                owners[asset_id] = li
    for asset in pkg.assets:
        if asset.id not in owners:
            issues.append(
                f"Asset 0x{asset.id:08X} ({asset.debug.name}) belongs to no layer"
            )
    for asset in pkg.assets:
        start = asset.offset - pkg.data_offset
        if asset.size and (start < 0 or start + asset.size > len(pkg.data)):
            issues.append(
                f"Asset 0x{asset.id:08X} payload {asset.offset}+{asset.size} lies outside the data block"
            )
    largest = max((a.size for a in pkg.assets), default=0)
    if largest > pkg.counts.max_asset_size:
        issues.append(
            f"Largest asset is {largest} bytes but PCNT max_asset_size is {pkg.counts.max_asset_size}"
        )
    return issues
