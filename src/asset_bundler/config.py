"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from asset_bundler.rules.naming import (
    DEFAULT_RESERVED_GROUPS,
    DEFAULT_SCENE_EXTENSION,
    NamingPolicy,
)
from asset_bundler.rules.validation import (
    DEFAULT_CONTENT_PREFIX,
    DEFAULT_EXCLUDED_EXTENSIONS,
    DEFAULT_UNTRACKED_SUFFIXES,
    ValidationRules,
)

CONFIG_FILE_NAME = "asset_bundler.toml"
DEFAULT_DEPENDENCY_GRAPH = "dependencies.json"


@dataclass(slots=True, frozen=True)
class RecordingConfig:
    """Load-time recording behavior."""

    auto_record: bool
    validate_asset_path: bool
    auto_group_by_directories: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class BundlerConfig:
    """Fully merged project configuration."""

    project_root: Path
    data_dir: Path
    dependency_graph: Path
    naming: NamingPolicy
    validation: ValidationRules
    recording: RecordingConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for tool responses."""
        return {
            "project_root": str(self.project_root),
            "data_dir": str(self.data_dir),
            "dependency_graph": str(self.dependency_graph),
            "naming": {
                "extension": self.naming.extension,
                "name_by_hash": self.naming.name_by_hash,
                "scene_extension": self.naming.scene_extension,
                "reserved_groups": dict(self.naming.reserved_groups),
            },
            "content": {
                "prefix": self.validation.content_prefix,
                "excluded_extensions": list(self.validation.excluded_extensions),
                "untracked_suffixes": list(self.validation.untracked_suffixes),
            },
            "recording": {
                "auto_record": self.recording.auto_record,
                "validate_asset_path": self.recording.validate_asset_path,
                "auto_group_by_directories": list(self.recording.auto_group_by_directories),
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    extension: str | None = None
    name_by_hash: bool | None = None
    auto_record: bool | None = None


def default_config(project_root: Path) -> BundlerConfig:
    """Build default config for a given project root."""
    resolved_root = project_root.resolve()
    return BundlerConfig(
        project_root=resolved_root,
        data_dir=resolved_root / ".asset_bundler",
        dependency_graph=resolved_root / DEFAULT_DEPENDENCY_GRAPH,
        naming=NamingPolicy(
            extension="",
            name_by_hash=False,
            scene_extension=DEFAULT_SCENE_EXTENSION,
            reserved_groups=DEFAULT_RESERVED_GROUPS,
        ),
        validation=ValidationRules(
            content_prefix=DEFAULT_CONTENT_PREFIX,
            excluded_extensions=DEFAULT_EXCLUDED_EXTENSIONS,
            untracked_suffixes=DEFAULT_UNTRACKED_SUFFIXES,
        ),
        recording=RecordingConfig(
            auto_record=False,
            validate_asset_path=False,
            auto_group_by_directories=(),
        ),
    )


def load_project_config_file(project_root: Path) -> dict[str, object]:
    """Load optional asset_bundler.toml from the project root."""
    config_path = project_root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _optional_str(table: dict[str, object], section: str, field: str, default: str) -> str:
    if field not in table:
        return default
    value = table[field]
    if not isinstance(value, str):
        raise ValueError(f"Config field '{section}.{field}' must be a string.")
    return value


def _optional_bool(table: dict[str, object], section: str, field: str, default: bool) -> bool:
    if field not in table:
        return default
    value = table[field]
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{section}.{field}' must be a boolean.")
    return value


def _reserved_groups(value: object) -> tuple[tuple[str, str], ...]:
    if not isinstance(value, dict):
        raise ValueError("Config field 'naming.reserved_groups' must be a table.")
    output: list[tuple[str, str]] = []
    for extension in sorted(value):
        group = value[extension]
        if not isinstance(group, str) or not group:
            raise ValueError(
                "Config field 'naming.reserved_groups' must map extensions to group names."
            )
        output.append((extension, group))
    return tuple(output)


def merge_config(
    base: BundlerConfig, project_payload: dict[str, object], overrides: CliOverrides
) -> BundlerConfig:
    """Merge defaults, project config, then CLI/startup overrides."""
    naming_payload = _get_table(project_payload, "naming")
    content_payload = _get_table(project_payload, "content")
    dependencies_payload = _get_table(project_payload, "dependencies")
    recording_payload = _get_table(project_payload, "recording")

    reserved_groups = base.naming.reserved_groups
    if "reserved_groups" in naming_payload:
        reserved_groups = _reserved_groups(naming_payload["reserved_groups"])
    naming = NamingPolicy(
        extension=_optional_str(naming_payload, "naming", "extension", base.naming.extension),
        name_by_hash=_optional_bool(
            naming_payload, "naming", "name_by_hash", base.naming.name_by_hash
        ),
        scene_extension=_optional_str(
            naming_payload, "naming", "scene_extension", base.naming.scene_extension
        ),
        reserved_groups=reserved_groups,
    )

    excluded_extensions = base.validation.excluded_extensions
    if "excluded_extensions" in content_payload:
        excluded_extensions = _tuple_of_strings(
            content_payload["excluded_extensions"], "content", "excluded_extensions"
        )
    untracked_suffixes = base.validation.untracked_suffixes
    if "untracked_suffixes" in content_payload:
        untracked_suffixes = _tuple_of_strings(
            content_payload["untracked_suffixes"], "content", "untracked_suffixes"
        )
    validation = ValidationRules(
        content_prefix=_optional_str(
            content_payload, "content", "prefix", base.validation.content_prefix
        ),
        excluded_extensions=excluded_extensions,
        untracked_suffixes=untracked_suffixes,
    )

    dependency_graph = base.dependency_graph
    if "graph" in dependencies_payload:
        graph_value = _optional_str(dependencies_payload, "dependencies", "graph", "")
        if not graph_value:
            raise ValueError("Config field 'dependencies.graph' must be a non-empty string.")
        dependency_graph = (base.project_root / graph_value).resolve()

    auto_group_by_directories = base.recording.auto_group_by_directories
    if "auto_group_by_directories" in recording_payload:
        auto_group_by_directories = _tuple_of_strings(
            recording_payload["auto_group_by_directories"],
            "recording",
            "auto_group_by_directories",
        )
    recording = RecordingConfig(
        auto_record=_optional_bool(
            recording_payload, "recording", "auto_record", base.recording.auto_record
        ),
        validate_asset_path=_optional_bool(
            recording_payload,
            "recording",
            "validate_asset_path",
            base.recording.validate_asset_path,
        ),
        auto_group_by_directories=auto_group_by_directories,
    )

    merged = BundlerConfig(
        project_root=base.project_root,
        data_dir=base.data_dir,
        dependency_graph=dependency_graph,
        naming=naming,
        validation=validation,
        recording=recording,
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: BundlerConfig, overrides: CliOverrides) -> BundlerConfig:
    """Apply startup overrides at highest precedence."""
    naming = NamingPolicy(
        extension=(
            overrides.extension if overrides.extension is not None else config.naming.extension
        ),
        name_by_hash=(
            overrides.name_by_hash
            if overrides.name_by_hash is not None
            else config.naming.name_by_hash
        ),
        scene_extension=config.naming.scene_extension,
        reserved_groups=config.naming.reserved_groups,
    )
    recording = RecordingConfig(
        auto_record=(
            overrides.auto_record
            if overrides.auto_record is not None
            else config.recording.auto_record
        ),
        validate_asset_path=config.recording.validate_asset_path,
        auto_group_by_directories=config.recording.auto_group_by_directories,
    )
    data_dir = overrides.data_dir or config.data_dir
    return BundlerConfig(
        project_root=config.project_root,
        data_dir=data_dir.resolve(),
        dependency_graph=config.dependency_graph,
        naming=naming,
        validation=config.validation,
        recording=recording,
    )


def load_effective_config(
    project_root: Path, overrides: CliOverrides | None = None
) -> BundlerConfig:
    """Load effective config using merge order defaults -> project config -> overrides."""
    resolved_root = project_root.resolve()
    base = default_config(resolved_root)
    payload = load_project_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())
