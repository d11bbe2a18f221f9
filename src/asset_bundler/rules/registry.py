"""Declared asset grouping, scene sub-packages and rules version."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import PurePosixPath

from asset_bundler.rules.models import (
    GROUP_BY_DIRECTORY,
    GROUP_BY_EXPLICIT,
    GROUP_BY_FILENAME,
    GROUP_BY_VALUES,
    AssetDeclaration,
    InvalidDeclarationError,
    RulesVersion,
    SubPackage,
)
from asset_bundler.rules.naming import DEFAULT_SCENE_EXTENSION
from asset_bundler.rules.validation import DEFAULT_CONTENT_PREFIX, normalize_asset_key

ExistsFn = Callable[[str], bool]


class AssetRegistry:
    """Ordered store of declarations that seeds every analysis pass.

    Declarations are immutable records; an upsert replaces the record in place
    so first-declaration order is kept. The most recently declared scene is the
    "current scene" and every declaration made while it is current is also
    recorded in that scene's sub-package.
    """

    def __init__(
        self,
        exists: ExistsFn,
        *,
        scene_extension: str = DEFAULT_SCENE_EXTENSION,
        content_prefix: str = DEFAULT_CONTENT_PREFIX,
        auto_record: bool = False,
        validate_asset_path: bool = False,
        auto_group_by_directories: Iterable[str] = (),
        declarations: Iterable[AssetDeclaration] = (),
        sub_packages: Iterable[SubPackage] = (),
        current_scene: str | None = None,
        version: RulesVersion | None = None,
    ) -> None:
        self._exists = exists
        self._scene_extension = scene_extension
        self._content_prefix = content_prefix
        self._auto_record = auto_record
        self._validate_asset_path = validate_asset_path
        self._auto_group_by_directories = tuple(
            normalize_asset_key(item).rstrip("/") for item in auto_group_by_directories
        )
        self._declarations: dict[str, AssetDeclaration] = {
            item.asset_key: item for item in declarations
        }
        self._sub_packages: dict[str, SubPackage] = {item.name: item for item in sub_packages}
        self._current_scene = current_scene
        self._version = version or RulesVersion()

    @property
    def current_scene(self) -> str | None:
        return self._current_scene

    @property
    def version(self) -> RulesVersion:
        return self._version

    def declarations(self) -> tuple[AssetDeclaration, ...]:
        """Return declarations in first-declaration order."""
        return tuple(self._declarations.values())

    def get(self, asset_key: str) -> AssetDeclaration | None:
        return self._declarations.get(normalize_asset_key(asset_key))

    def sub_packages(self) -> tuple[SubPackage, ...]:
        return tuple(self._sub_packages.values())

    def declare(
        self,
        asset_key: str,
        group_by: str = GROUP_BY_FILENAME,
        explicit_group: str | None = None,
    ) -> AssetDeclaration:
        """Create or update the declaration for one asset key."""
        key = normalize_asset_key(asset_key)
        if not key:
            raise InvalidDeclarationError(asset_key=asset_key, message="Asset key is empty.")
        if group_by not in GROUP_BY_VALUES:
            raise InvalidDeclarationError(
                asset_key=key,
                message=f"Unknown grouping strategy '{group_by}' for {key}",
            )
        if group_by == GROUP_BY_EXPLICIT and not (explicit_group or "").rstrip("_"):
            raise InvalidDeclarationError(
                asset_key=key,
                message=f"Explicit grouping requires a group name: {key}",
            )

        declaration = AssetDeclaration(
            asset_key=key,
            group_by=group_by,
            explicit_group=explicit_group if group_by == GROUP_BY_EXPLICIT else None,
        )
        self._declarations[key] = declaration
        if key.endswith(self._scene_extension):
            self._current_scene = PurePosixPath(key).stem
        self.patch_asset(key)
        return declaration

    def patch_asset(self, asset_key: str) -> SubPackage | None:
        """Record an existing asset in the current scene's sub-package."""
        if self._current_scene is None:
            return None
        key = normalize_asset_key(asset_key)
        package = self._sub_packages.get(self._current_scene)
        if package is None:
            package = SubPackage(name=self._current_scene, asset_keys=())
        if self._exists(key):
            package = package.with_asset(key)
        self._sub_packages[self._current_scene] = package
        return package

    def record_loaded_asset(self, asset_key: str) -> AssetDeclaration | None:
        """Declare an asset seen at load time when auto-recording is enabled."""
        if not self._auto_record:
            return None
        key = normalize_asset_key(asset_key)
        return self.declare(key, self.infer_group_by(key))

    def loaded_asset_warning(self, asset_key: str) -> str | None:
        """Describe a loaded asset that the rules will not bundle, if any."""
        if self._auto_record or not self._validate_asset_path:
            return None
        key = normalize_asset_key(asset_key)
        if not key.startswith(self._content_prefix):
            return None
        if not self._exists(key):
            return f"Asset does not exist: {key}"
        if key not in self._declarations:
            return f"Asset is not declared in the build rules: {key}"
        return None

    def infer_group_by(self, asset_key: str) -> str:
        """Group by directory inside configured auto-group directories, else by file name."""
        directory = PurePosixPath(normalize_asset_key(asset_key)).parent.as_posix()
        for root in self._auto_group_by_directories:
            if directory == root or directory.startswith(f"{root}/"):
                return GROUP_BY_DIRECTORY
        return GROUP_BY_FILENAME

    def bump_version(self) -> str:
        self._version = self._version.bump()
        return str(self._version)
