import io
from pathlib import Path

from hip_builder import AssetSpec, LayerSpec, build_hip, u32
from hipdiff import decode
from hipdiff.api import DiffRequest, diff_files, load_package
from hipdiff.diff import DiffOptions
from hipdiff.format.inspector import audit_package, describe_package
from hipdiff.logging import configure_logging
from hipdiff.reporting import PlainReporter, SilentReporter, set_reporter


def test_describe_package_summary():
    pkg = decode(
        build_hip(
            [AssetSpec(1, b"abcd", name="A", filename="a.txt")],
            [LayerSpec(2, [1], misc=6)],
            padding=2,
        )
    )
    d = describe_package(pkg)
    assert d["version"] == {"sub": 2, "client": 0x000A000F, "compat": 1}
    assert d["platform"] is None
    assert d["data"]["size"] == 4
    assert d["data"]["padding"] == 2
    assert d["assets"] == [
        {
            "id": 1,
            "type": pkg.assets[0].type,
            "offset": pkg.assets[0].offset,
            "size": 4,
            "flags": 0,
            "name": "A",
            "filename": "a.txt",
            "checksum": pkg.assets[0].debug.checksum,
        }
    ]
    assert d["layers"] == [{"type": 2, "asset_count": 1, "misc": 6}]


def test_audit_clean_package():
    pkg = decode(build_hip([AssetSpec(1, b"a"), AssetSpec(2, b"b")]))
    assert audit_package(pkg) == []


def test_audit_reports_cross_reference_problems():
    assets = [
        AssetSpec(1, b"aaaa"),
        AssetSpec(2, b"b", name="Lonely"),
        AssetSpec(3, b"c"),
    ]
    layers = [LayerSpec(0, [1]), LayerSpec(1, [1, 9])]
    # Membership total still equals the asset count, so decoding succeeds.
    pkg = decode(build_hip(assets, layers, counts={"max_asset_size": 2}))
    issues = audit_package(pkg)
    assert any("unknown asset 0x00000009" in i for i in issues)
    assert any("listed by layers 0 and 1" in i for i in issues)
    assert any("(Lonely) belongs to no layer" in i for i in issues)
    assert any("Largest asset is 4 bytes" in i for i in issues)


def test_audit_reports_payload_outside_data_block():
    assets = [AssetSpec(1, b"aa"), AssetSpec(2, b"bbbb"), AssetSpec(3, b"")]
    raw = bytearray(build_hip(assets))
    # Second asset grows past the data; the empty third moves to offset 0.
    second = raw.index(b"AHDR", raw.index(b"AHDR") + 4)
    raw[second + 20 : second + 24] = u32(1000)
    third = raw.index(b"AHDR", second + 4)
    raw[third + 16 : third + 20] = u32(0)
    pkg = decode(bytes(raw))
    outside = [i for i in audit_package(pkg) if "outside the data block" in i]
    assert outside == [
        f"Asset 0x00000002 payload {pkg.assets[1].offset}+1000 lies outside the data block"
    ]


def test_load_package_logs_audit_warnings(tmp_path: Path):
    buf = io.StringIO()
    set_reporter(PlainReporter(stream=buf, use_color=False))
    configure_logging(0)
    try:
        p = tmp_path / "x.hip"
        p.write_bytes(
            build_hip([AssetSpec(1, b"abc")], counts={"max_asset_size": 1})
        )
        pkg = load_package(p)
    finally:
        set_reporter(SilentReporter())
    assert pkg.counts.max_asset_size == 1
    text = buf.getvalue()
    assert "WARN: x.hip: Largest asset is 3 bytes" in text
    assert "Decode summary: file=x.hip assets=1 layers=1 data_bytes=3" in text


def test_diff_files(tmp_path: Path):
    set_reporter(SilentReporter())
    a = tmp_path / "a.hip"
    b = tmp_path / "b.hip"
    a.write_bytes(build_hip([AssetSpec(1, b"x")]))
    b.write_bytes(build_hip([AssetSpec(1, b"y")]))
    result = diff_files(DiffRequest(a, b, DiffOptions(asset_only=True)))
    assert result.counts.modifications == 1
