"""Deterministic bundle naming."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from asset_bundler.rules.models import (
    GROUP_BY_DIRECTORY,
    GROUP_BY_EXPLICIT,
    GROUP_BY_FILENAME,
    GROUP_BY_NONE,
    InvalidDeclarationError,
)

DEFAULT_SCENE_EXTENSION = ".unity"
DEFAULT_RESERVED_GROUPS = ((".shader", "shaders"),)

CHILDREN_PREFIX = "children_"
SHARED_PREFIX = "shared_"


@dataclass(slots=True, frozen=True)
class NamingPolicy:
    """Project-wide bundle naming settings."""

    extension: str = ""
    name_by_hash: bool = False
    scene_extension: str = DEFAULT_SCENE_EXTENSION
    reserved_groups: tuple[tuple[str, str], ...] = field(default=DEFAULT_RESERVED_GROUPS)

    def is_scene(self, asset_key: str) -> bool:
        return asset_key.endswith(self.scene_extension)

    def reserved_group(self, asset_key: str) -> str | None:
        """Return the fixed group for reserved extensions, if any."""
        for extension, group in self.reserved_groups:
            if asset_key.endswith(extension):
                return group
        return None


def group_name(
    policy: NamingPolicy,
    group_by: str,
    asset_key: str,
    explicit_group: str | None = None,
    *,
    is_shared: bool = False,
    is_child: bool = False,
) -> str | None:
    """Compute the canonical bundle name for one asset.

    Reserved extensions always map to their fixed explicit group and scenes are
    always grouped by file name. Returns None for the ``none`` strategy.
    """
    reserved = policy.reserved_group(asset_key)
    if reserved is not None:
        group_by = GROUP_BY_EXPLICIT
        explicit_group = reserved
        is_child = False
    elif policy.is_scene(asset_key):
        group_by = GROUP_BY_FILENAME

    if group_by == GROUP_BY_NONE:
        return None
    if group_by == GROUP_BY_EXPLICIT:
        if not explicit_group:
            raise InvalidDeclarationError(
                asset_key=asset_key,
                message=f"Explicit grouping requires a group name: {asset_key}",
            )
        base = explicit_group
    elif group_by == GROUP_BY_FILENAME:
        stem = PurePosixPath(asset_key).stem
        sub_path = _underscored(PurePosixPath(stem).parent.as_posix())
        base = f"{sub_path}_{stem}"
    elif group_by == GROUP_BY_DIRECTORY:
        base = _underscored(PurePosixPath(asset_key).parent.as_posix())
    else:
        raise InvalidDeclarationError(
            asset_key=asset_key,
            message=f"Unknown grouping strategy '{group_by}': {asset_key}",
        )

    if is_child:
        base = CHILDREN_PREFIX + base
    elif is_shared:
        base = SHARED_PREFIX + base
    if not base.rstrip("_"):
        raise InvalidDeclarationError(
            asset_key=asset_key,
            message=f"Bundle name for {asset_key} is empty after trimming underscores.",
        )

    if policy.name_by_hash:
        return md5_hex(base) + policy.extension
    return base.rstrip("_").lower() + policy.extension


def strip_extension(policy: NamingPolicy, bundle_name: str) -> str:
    """Remove the configured bundle extension from a finished name."""
    if policy.extension and bundle_name.endswith(policy.extension):
        return bundle_name[: -len(policy.extension)]
    return bundle_name


def md5_hex(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def _underscored(directory: str) -> str:
    if directory == ".":
        return ""
    return directory.replace("\\", "/").replace("/", "_")
