"""Decoding well-formed packages built by hip_builder."""

from __future__ import annotations

import io
import zlib

from hip_builder import AssetSpec, LayerSpec, build_hip, data_start_of
from hipdiff import decode
from hipdiff.format import AssetDebug, LayerDebug, Platform, Version


def _sample(**kwargs) -> bytes:
    assets = [
        AssetSpec(0x10, b"first payload", name="Alpha", filename="a.bin", align=4),
        AssetSpec(0x20, b"2nd", type=0x54455854, name="Beta", flags=3, plus=7),
        AssetSpec(0x30, b"", name="Empty"),
    ]
    layers = [
        LayerSpec(1, [0x10, 0x30], misc=5),
        LayerSpec(4, [0x20], misc=9),
    ]
    return build_hip(assets, layers, **kwargs)


def test_decode_header_sections():
    pkg = decode(
        _sample(
            platform=(0x47433030, ["GameCube", "Gamecube", "NTSC", "US Common"]),
            asset_info=1,
            layer_info=2,
            stream_info=3,
        )
    )
    assert pkg.version == Version(2, 0x000A000F, 1)
    assert pkg.flags == 0x2E
    assert pkg.counts.asset_count == 3
    assert pkg.counts.layer_count == 2
    assert pkg.counts.max_asset_size == len(b"first payload")
    assert pkg.creation.time == 1000
    assert pkg.creation.note == "Tue Jan 01 00:00:00 2002\n"
    assert pkg.modification.time == 2000
    assert pkg.platform == Platform(
        0x47433030, ("GameCube", "Gamecube", "NTSC", "US Common")
    )
    assert (pkg.misc_info.asset_info, pkg.misc_info.layer_info) == (1, 2)
    assert pkg.misc_info.stream_info == 3


def test_decode_assets_in_stream_order():
    pkg = decode(_sample())
    assert [a.id for a in pkg.assets] == [0x10, 0x20, 0x30]
    alpha, beta, empty = pkg.assets
    assert alpha.debug == AssetDebug(
        4, "Alpha", "a.bin", zlib.crc32(b"first payload")
    )
    assert alpha.name == "Alpha"
    assert beta.type == 0x54455854
    assert (beta.flags, beta.plus, beta.size) == (3, 7, 3)
    assert empty.size == 0


def test_decode_layers():
    pkg = decode(_sample())
    assert [layer.type for layer in pkg.layers] == [1, 4]
    assert pkg.layers[0].asset_ids == (0x10, 0x30)
    assert pkg.layers[0].debug == LayerDebug(5)
    assert pkg.layers[1].debug == LayerDebug(9)
    assert pkg.total_layer_assets() == pkg.counts.asset_count


def test_payloads_resolve_through_data_block():
    raw = _sample(padding=6)
    pkg = decode(raw)
    assert pkg.data_padding == 6
    assert pkg.data_offset == data_start_of(raw)
    assert bytes(pkg.payload(pkg.assets[0])) == b"first payload"
    assert bytes(pkg.payload(pkg.assets[1])) == b"2nd"
    assert bytes(pkg.payload(pkg.assets[2])) == b""
    assert pkg.data == b"first payload2nd"


def test_decode_accepts_binary_stream():
    raw = _sample()
    assert decode(io.BytesIO(raw)) == decode(raw)


def test_unknown_blocks_and_trailing_fields_are_skipped():
    plain = decode(_sample())
    noisy = decode(_sample(with_unknown=True))
    assert noisy.version == plain.version
    assert noisy.counts == plain.counts
    assert noisy.misc_info == plain.misc_info
    assert [a.debug for a in noisy.assets] == [a.debug for a in plain.assets]
    assert noisy.layers == plain.layers
    for asset in noisy.assets:
        assert bytes(noisy.payload(asset)) == bytes(
            plain.payload(plain.asset_index()[asset.id])
        )


def test_missing_debug_blocks_use_defaults():
    assets = [AssetSpec(1, b"xy", name="ignored", debug=False)]
    layers = [LayerSpec(0, [1], misc=3, debug=False)]
    pkg = decode(build_hip(assets, layers))
    assert pkg.assets[0].debug == AssetDebug()
    assert pkg.assets[0].name == ""
    assert pkg.layers[0].debug == LayerDebug()


def test_no_platform_block():
    pkg = decode(_sample())
    assert pkg.platform is None


def test_platform_with_extra_strings():
    strings = ["P", "Q", "R", "S", "T"]
    pkg = decode(_sample(platform=(1, strings)))
    assert pkg.platform.strings == tuple(strings)


def test_long_names_are_truncated():
    name = "n" * 45
    pkg = decode(build_hip([AssetSpec(1, b"z", name=name, filename="f")]))
    assert pkg.assets[0].name == "n" * 31
    assert pkg.assets[0].debug.filename == "f"


def test_empty_package_skips_data_block():
    pkg = decode(build_hip([], [], padding=4))
    assert pkg.assets == ()
    assert pkg.layers == ()
    assert pkg.data == b""
    assert pkg.data_offset == 0
    assert pkg.data_padding == 0


def test_empty_layers_are_kept():
    assets = [AssetSpec(1, b"a")]
    layers = [LayerSpec(2, []), LayerSpec(3, [1])]
    pkg = decode(build_hip(assets, layers))
    assert [len(layer.asset_ids) for layer in pkg.layers] == [0, 1]
