"""Versioned on-disk record of declarations, bundles and sub-packages."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from asset_bundler.rules.models import (
    GROUP_BY_EXPLICIT,
    GROUP_BY_VALUES,
    AssetDeclaration,
    RulesVersion,
    SubPackage,
)

RULES_SCHEMA_VERSION = 1


@dataclass(slots=True, frozen=True)
class RulesSchemaUnsupportedError(Exception):
    """Raised when the stored rules record has an unsupported schema."""

    found: int
    expected: int


@dataclass(slots=True, frozen=True)
class RulesRecord:
    """Everything persisted between runs."""

    version: RulesVersion
    current_scene: str | None
    declarations: tuple[AssetDeclaration, ...]
    sub_packages: tuple[SubPackage, ...]
    bundles: tuple[dict[str, object], ...]
    last_analysis_timestamp: str | None


def empty_record() -> RulesRecord:
    return RulesRecord(
        version=RulesVersion(),
        current_scene=None,
        declarations=(),
        sub_packages=(),
        bundles=(),
        last_analysis_timestamp=None,
    )


class RulesStore:
    """Reads and atomically writes ``rules.json`` under the data directory."""

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir.resolve()
        self._path = self._data_dir / "rules.json"

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> RulesRecord:
        """Load the last committed record, or an empty one when none exists."""
        if not self._path.exists():
            return empty_record()
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (json.JSONDecodeError, UnicodeDecodeError) as error:
            raise RulesSchemaUnsupportedError(found=-1, expected=RULES_SCHEMA_VERSION) from error
        if not isinstance(payload, dict):
            raise RulesSchemaUnsupportedError(found=-1, expected=RULES_SCHEMA_VERSION)
        schema = payload.get("schema_version")
        if not isinstance(schema, int):
            raise RulesSchemaUnsupportedError(found=-1, expected=RULES_SCHEMA_VERSION)
        if schema != RULES_SCHEMA_VERSION:
            raise RulesSchemaUnsupportedError(found=schema, expected=RULES_SCHEMA_VERSION)

        return RulesRecord(
            version=_load_version(payload.get("version")),
            current_scene=_as_optional_str(payload.get("current_scene")),
            declarations=tuple(_load_declarations(payload.get("declarations"))),
            sub_packages=tuple(_load_sub_packages(payload.get("sub_packages"))),
            bundles=tuple(_load_bundles(payload.get("bundles"))),
            last_analysis_timestamp=_as_optional_str(payload.get("last_analysis_timestamp")),
        )

    def save(self, record: RulesRecord) -> None:
        """Write the record with a temp-file-then-replace swap."""
        payload: dict[str, object] = {
            "schema_version": RULES_SCHEMA_VERSION,
            "version": {
                "major": record.version.major,
                "minor": record.version.minor,
                "build": record.version.build,
            },
            "current_scene": record.current_scene,
            "declarations": [
                {
                    "asset_key": item.asset_key,
                    "group_by": item.group_by,
                    "explicit_group": item.explicit_group,
                }
                for item in record.declarations
            ],
            "sub_packages": [
                {"name": item.name, "asset_keys": list(item.asset_keys)}
                for item in record.sub_packages
            ],
            "bundles": [dict(item) for item in record.bundles],
            "last_analysis_timestamp": record.last_analysis_timestamp,
        }
        self._data_dir.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, sort_keys=True, indent=2)
            handle.write("\n")
        tmp.replace(self._path)


def _load_version(value: object) -> RulesVersion:
    if not isinstance(value, dict):
        return RulesVersion()
    parts = [value.get(name) for name in ("major", "minor", "build")]
    major, minor, build = (part if isinstance(part, int) else 0 for part in parts)
    return RulesVersion(major=major, minor=minor, build=build)


def _load_declarations(value: object) -> list[AssetDeclaration]:
    output: list[AssetDeclaration] = []
    if not isinstance(value, list):
        return output
    for obj in value:
        if not isinstance(obj, dict):
            continue
        asset_key = obj.get("asset_key")
        group_by = obj.get("group_by")
        explicit_group = obj.get("explicit_group")
        if not isinstance(asset_key, str) or not asset_key:
            continue
        if not isinstance(group_by, str) or group_by not in GROUP_BY_VALUES:
            continue
        if group_by == GROUP_BY_EXPLICIT and (
            not isinstance(explicit_group, str) or not explicit_group.rstrip("_")
        ):
            continue
        output.append(
            AssetDeclaration(
                asset_key=asset_key,
                group_by=group_by,
                explicit_group=explicit_group if isinstance(explicit_group, str) else None,
            )
        )
    return output


def _load_sub_packages(value: object) -> list[SubPackage]:
    output: list[SubPackage] = []
    if not isinstance(value, list):
        return output
    for obj in value:
        if not isinstance(obj, dict):
            continue
        name = obj.get("name")
        asset_keys = obj.get("asset_keys")
        if not isinstance(name, str) or not isinstance(asset_keys, list):
            continue
        keys = tuple(dict.fromkeys(item for item in asset_keys if isinstance(item, str)))
        output.append(SubPackage(name=name, asset_keys=keys))
    return output


def _load_bundles(value: object) -> list[dict[str, object]]:
    output: list[dict[str, object]] = []
    if not isinstance(value, list):
        return output
    for obj in value:
        if not isinstance(obj, dict):
            continue
        bundle_name = obj.get("bundle_name")
        asset_keys = obj.get("asset_keys")
        if not isinstance(bundle_name, str) or not isinstance(asset_keys, list):
            continue
        output.append(
            {
                "bundle_name": bundle_name,
                "asset_keys": [item for item in asset_keys if isinstance(item, str)],
            }
        )
    return output


def _as_optional_str(value: object) -> str | None:
    if isinstance(value, str):
        return value
    return None
