from __future__ import annotations

import json
from pathlib import Path

import pytest

from asset_bundler.rules import (
    AssetDeclaration,
    RulesRecord,
    RulesSchemaUnsupportedError,
    RulesStore,
    RulesVersion,
    SubPackage,
    empty_record,
)


def test_missing_rules_file_loads_empty_record(tmp_path: Path) -> None:
    store = RulesStore(tmp_path / ".asset_bundler")

    assert store.load() == empty_record()


def test_saved_record_loads_back_unchanged(tmp_path: Path) -> None:
    store = RulesStore(tmp_path / ".asset_bundler")
    record = RulesRecord(
        version=RulesVersion(1, 2, 3),
        current_scene="Main",
        declarations=(
            AssetDeclaration("Assets/Scenes/Main.unity"),
            AssetDeclaration("Assets/UI/Title.prefab", "explicit", "menus"),
        ),
        sub_packages=(SubPackage("Main", ("Assets/Scenes/Main.unity",)),),
        bundles=({"bundle_name": "_main", "asset_keys": ["Assets/Scenes/Main.unity"]},),
        last_analysis_timestamp="2026-01-01T00:00:00.000Z",
    )

    store.save(record)

    assert store.path == (tmp_path / ".asset_bundler" / "rules.json").resolve()
    assert store.load() == record
    assert not store.path.with_suffix(".json.tmp").exists()


def test_saved_json_is_stable(tmp_path: Path) -> None:
    store = RulesStore(tmp_path)
    store.save(empty_record())
    first = store.path.read_text(encoding="utf-8")
    store.save(empty_record())

    assert store.path.read_text(encoding="utf-8") == first
    assert json.loads(first)["schema_version"] == 1


def test_unsupported_schema_version_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "rules.json").write_text(json.dumps({"schema_version": 99}), encoding="utf-8")

    with pytest.raises(RulesSchemaUnsupportedError) as excinfo:
        RulesStore(tmp_path).load()

    assert excinfo.value.found == 99
    assert excinfo.value.expected == 1


def test_missing_schema_version_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "rules.json").write_text(json.dumps({"declarations": []}), encoding="utf-8")

    with pytest.raises(RulesSchemaUnsupportedError):
        RulesStore(tmp_path).load()


def test_malformed_entries_are_dropped_on_load(tmp_path: Path) -> None:
    payload = {
        "schema_version": 1,
        "declarations": [
            {"asset_key": "Assets/A.png", "group_by": "filename", "explicit_group": None},
            {"asset_key": "Assets/B.png", "group_by": "by_color"},
            {"asset_key": "Assets/C.png", "group_by": "explicit", "explicit_group": ""},
            {"asset_key": "", "group_by": "filename"},
            "not-an-object",
        ],
        "sub_packages": [
            {"name": "Main", "asset_keys": ["Assets/A.png", "Assets/A.png", 3]},
            {"name": 5, "asset_keys": []},
        ],
        "bundles": [{"bundle_name": "_a", "asset_keys": ["Assets/A.png"]}, {"asset_keys": []}],
    }
    (tmp_path / "rules.json").write_text(json.dumps(payload), encoding="utf-8")

    record = RulesStore(tmp_path).load()

    assert record.declarations == (AssetDeclaration("Assets/A.png", "filename", None),)
    assert record.sub_packages == (SubPackage("Main", ("Assets/A.png",)),)
    assert record.bundles == ({"bundle_name": "_a", "asset_keys": ["Assets/A.png"]},)
    assert record.version == RulesVersion()
    assert record.current_scene is None


def test_explicit_entries_with_underscore_only_groups_are_dropped(tmp_path: Path) -> None:
    payload = {
        "schema_version": 1,
        "declarations": [
            {"asset_key": "Assets/A.png", "group_by": "explicit", "explicit_group": "_"},
            {"asset_key": "Assets/B.png", "group_by": "explicit", "explicit_group": "ui_"},
        ],
    }
    (tmp_path / "rules.json").write_text(json.dumps(payload), encoding="utf-8")

    record = RulesStore(tmp_path).load()

    assert record.declarations == (AssetDeclaration("Assets/B.png", "explicit", "ui_"),)


@pytest.mark.parametrize("content", [b"{broken", b'{"schema_version": 1, "x": "\xff\xfe"}'])
def test_unreadable_rules_file_is_reported_as_unsupported(tmp_path: Path, content: bytes) -> None:
    (tmp_path / "rules.json").write_bytes(content)

    with pytest.raises(RulesSchemaUnsupportedError) as excinfo:
        RulesStore(tmp_path).load()

    assert excinfo.value.found == -1
    assert excinfo.value.expected == 1
