import dataclasses
import itertools
import json

from hip_builder import AssetSpec, LayerSpec, build_hip
from hipdiff import ChangeKind, DiffOptions, decode, diff


def _pkg(assets, layers=None, **kwargs):
    return decode(build_hip(assets, layers, **kwargs))


def _base_assets():
    return [
        AssetSpec(0x100, b"alpha", name="Alpha", filename="alpha.dff"),
        AssetSpec(0x200, b"bravo!", name="Bravo"),
        AssetSpec(0x300, b"charlie", name="Charlie"),
    ]


def test_self_diff_is_empty_in_every_mode():
    pkg = _pkg(_base_assets(), platform=(1, ["X"]))
    for flags in itertools.product([False, True], repeat=5):
        result = diff(pkg, pkg, DiffOptions(*flags))
        assert result.is_empty, flags
        assert result.counts.total == 0


def test_added_removed_changed():
    base = _pkg(_base_assets())
    mod_assets = _base_assets()
    mod_assets[1] = AssetSpec(0x200, b"BRAVO!", name="Bravo")
    del mod_assets[0]
    mod_assets.append(AssetSpec(0x400, b"delta", name="Delta"))
    mod = _pkg(mod_assets)

    result = diff(base, mod, DiffOptions(asset_only=True))
    kinds = [(d.kind, d.key) for d in result.asset_diffs]
    assert kinds == [
        (ChangeKind.REMOVED, 0x100),
        (ChangeKind.CHANGED, 0x200),
        (ChangeKind.ADDED, 0x400),
    ]
    removed, changed, added = result.asset_diffs
    assert removed.before_text == "Alpha" and removed.after is None
    assert added.after_text == "Delta" and added.before is None
    assert changed.before_text == changed.after_text == "Bravo"
    # Summary mode names the asset only.
    assert changed.fields == ()
    assert result.counts.to_dict() == {
        "additions": 1,
        "deletions": 1,
        "modifications": 1,
    }
    assert result.sections == ()
    assert result.layer_diffs == ()


def test_detailed_mode_lists_fields():
    base = _pkg([AssetSpec(1, b"aaaa", name="One", flags=1, align=4)])
    mod = _pkg([AssetSpec(1, b"bbbbbb", name="Uno", flags=2, align=8)])
    result = diff(base, mod, DiffOptions(asset_only=True, detailed=True))
    (entry,) = result.asset_diffs
    names = [f.field for f in entry.fields]
    assert names == ["size", "flags", "data", "align", "name", "checksum"]
    by_name = {f.field: f for f in entry.fields}
    assert (by_name["size"].before, by_name["size"].after) == ("4", "6")
    assert (by_name["flags"].before, by_name["flags"].after) == (
        "0x00000001",
        "0x00000002",
    )
    assert by_name["data"].before.startswith("4 bytes crc32=0x")
    assert by_name["name"].after == "Uno"
    # One changed asset counts once however many fields differ.
    assert result.counts.modifications == 1


def test_detailed_added_asset_carries_listing():
    base = _pkg([AssetSpec(1, b"a")])
    mod = _pkg([AssetSpec(1, b"a"), AssetSpec(0xABC, b"new", name="New", plus=3)])
    result = diff(base, mod, DiffOptions(detailed=True))
    (entry,) = result.assets_with(ChangeKind.ADDED)
    listing = {f.field: f.after for f in entry.fields}
    assert listing["id"] == "0x00000ABC"
    assert listing["size"] == "3"
    assert listing["plus"] == "3"
    assert listing["name"] == "New"
    assert all(f.kind is ChangeKind.ADDED for f in entry.fields)


def test_offsets_and_pluses_are_opt_in():
    base = _pkg([AssetSpec(1, b"same", plus=1)], padding=0)
    mod = _pkg([AssetSpec(1, b"same", plus=2)], padding=8)
    assert base.assets[0].offset != mod.assets[0].offset

    assert diff(base, mod, DiffOptions(asset_only=True)).is_empty

    with_offsets = diff(
        base, mod, DiffOptions(asset_only=True, detailed=True, include_offsets=True)
    )
    (entry,) = with_offsets.asset_diffs
    assert [f.field for f in entry.fields] == ["offset"]

    with_pluses = diff(
        base, mod, DiffOptions(asset_only=True, detailed=True, include_pluses=True)
    )
    (entry,) = with_pluses.asset_diffs
    assert [f.field for f in entry.fields] == ["plus"]


def test_payload_compare_ignores_position_in_data_block():
    base = _pkg([AssetSpec(1, b"xx"), AssetSpec(2, b"payload")])
    mod = _pkg([AssetSpec(1, b"xxxxxx"), AssetSpec(2, b"payload")])
    result = diff(base, mod, DiffOptions(asset_only=True))
    assert [d.key for d in result.asset_diffs] == [1]


def test_trusted_checksums_skip_payload_bytes():
    base = _pkg([AssetSpec(1, b"aaaa", checksum=0x1234)])
    mod = _pkg([AssetSpec(1, b"bbbb", checksum=0x1234)])
    assert diff(base, mod, DiffOptions(asset_only=True, trust_checksums=True)).is_empty

    result = diff(base, mod, DiffOptions(asset_only=True, detailed=True))
    (entry,) = result.asset_diffs
    assert [f.field for f in entry.fields] == ["data"]


def test_trusted_checksum_change_is_reported_as_data():
    base = _pkg([AssetSpec(1, b"aaaa", checksum=1)])
    mod = _pkg([AssetSpec(1, b"aaaa", checksum=2)])
    result = diff(
        base, mod, DiffOptions(asset_only=True, detailed=True, trust_checksums=True)
    )
    (entry,) = result.asset_diffs
    by_name = {f.field: f for f in entry.fields}
    assert by_name["data"].before == "checksum 0x00000001"
    assert by_name["checksum"].after == "0x00000002"


def test_unnamed_assets_are_labelled_by_id():
    base = _pkg([AssetSpec(0xBEEF, b"a")])
    mod = _pkg([])
    (entry,) = diff(base, mod).assets_with(ChangeKind.REMOVED)
    assert entry.before_text == "0x0000BEEF"


def test_asset_order_does_not_matter():
    base = _pkg(_base_assets())
    mod = _pkg(
        [
            AssetSpec(0x300, b"CHARLIE", name="Charlie"),
            AssetSpec(0x050, b"new", name="Zero"),
            AssetSpec(0x100, b"alpha", name="Alpha", filename="alpha.dff"),
        ]
    )
    options = DiffOptions(detailed=True)
    expected = diff(base, mod, options)
    shuffled = diff(
        dataclasses.replace(base, assets=tuple(reversed(base.assets))),
        dataclasses.replace(mod, assets=mod.assets[1:] + mod.assets[:1]),
        options,
    )
    assert shuffled.asset_diffs == expected.asset_diffs
    assert shuffled.counts == expected.counts
    assert [d.key for d in expected.asset_diffs] == [0x050, 0x200, 0x300]


def test_result_is_json_serialisable():
    base = _pkg(_base_assets(), [LayerSpec(0, [0x100, 0x200]), LayerSpec(1, [0x300])])
    mod = _pkg(
        _base_assets()[:2],
        [LayerSpec(0, [0x100, 0x200])],
    )
    data = diff(base, mod, DiffOptions(detailed=True)).to_dict()
    text = json.dumps(data)
    assert json.loads(text)["summary"]["deletions"] >= 2
    assert data["assets"][0]["kind"] == "removed"
    assert data["assets"][0]["before"]["debug"]["name"] == "Charlie"
