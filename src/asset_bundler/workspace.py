"""Project workspace tying declarations, persistence and analysis together."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from asset_bundler.analysis import BundlePlan, ProgressSink, ResolutionEngine
from asset_bundler.config import BundlerConfig
from asset_bundler.host import (
    DependencyOracle,
    FileDependencyOracle,
    FileSystem,
    LocalFileSystem,
    resolve_project_path,
)
from asset_bundler.logging import utc_timestamp
from asset_bundler.rules import (
    AssetDeclaration,
    AssetRegistry,
    InvalidDeclarationError,
    RulesRecord,
    RulesStore,
    SubPackage,
    normalize_asset_key,
)


class RulesWorkspace:
    """Loads the committed rules record and commits every successful change.

    A failed declaration batch or a failed/cancelled analysis pass is never
    written; the last committed record stays the last-known-good state.
    """

    def __init__(
        self,
        config: BundlerConfig,
        *,
        filesystem: FileSystem | None = None,
        oracle: DependencyOracle | None = None,
    ) -> None:
        self._config = config
        self._filesystem = filesystem or LocalFileSystem(config.project_root)
        self._oracle = oracle or FileDependencyOracle(config.dependency_graph)
        self._store = RulesStore(config.data_dir)
        self._engine = ResolutionEngine(
            naming=config.naming,
            validation=config.validation,
            oracle=self._oracle,
            filesystem=self._filesystem,
        )
        self._record = self._store.load()
        self._registry = self._build_registry(self._record)

    @property
    def registry(self) -> AssetRegistry:
        return self._registry

    @property
    def record(self) -> RulesRecord:
        return self._record

    def status(self) -> dict[str, object]:
        return {
            "project_root": str(self._config.project_root),
            "version": str(self._registry.version),
            "declaration_count": len(self._registry.declarations()),
            "current_scene": self._registry.current_scene,
            "sub_package_count": len(self._registry.sub_packages()),
            "last_analysis_timestamp": self._record.last_analysis_timestamp,
            "bundle_count": len(self._record.bundles),
            "effective_config": self._config.to_public_dict(),
        }

    def declare(
        self,
        paths: Sequence[str],
        group_by: str,
        group: str | None = None,
    ) -> list[AssetDeclaration]:
        """Declare every non-directory path, committing only if all succeed."""
        keys = [self._checked_key(raw_path) for raw_path in paths]
        declared: list[AssetDeclaration] = []
        try:
            for key in keys:
                if self._filesystem.is_directory(key):
                    continue
                declared.append(self._registry.declare(key, group_by, group))
        except InvalidDeclarationError:
            self._registry = self._build_registry(self._record)
            raise
        self._commit()
        return declared

    def patch(self, paths: Sequence[str]) -> SubPackage | None:
        """Add paths to the current scene's sub-package."""
        keys = [self._checked_key(raw_path) for raw_path in paths]
        package: SubPackage | None = None
        for key in keys:
            if self._filesystem.is_directory(key):
                continue
            package = self._registry.patch_asset(key)
        self._commit()
        return package

    def record_load(self, path: str) -> tuple[AssetDeclaration | None, str | None]:
        """Handle an asset load notification from the host."""
        key = self._checked_key(path)
        declaration = self._registry.record_loaded_asset(key)
        if declaration is not None:
            self._commit()
            return declaration, None
        return None, self._registry.loaded_asset_warning(key)

    def bump_version(self) -> str:
        version = self._registry.bump_version()
        self._commit()
        return version

    def analyze(self, progress: ProgressSink | None = None) -> BundlePlan:
        """Run one analysis pass and commit its bundles and pruned sub-packages."""
        plan = self._engine.analyze(self._registry, progress=progress)
        self._registry = self._build_registry(
            replace(self._snapshot(), sub_packages=plan.sub_packages)
        )
        self._commit(
            bundles=tuple(plan.to_build_list()),
            last_analysis_timestamp=utc_timestamp(),
        )
        return plan

    def bundles(self) -> list[dict[str, object]]:
        return [dict(item) for item in self._record.bundles]

    def _checked_key(self, raw_path: str) -> str:
        key = normalize_asset_key(raw_path)
        resolve_project_path(self._config.project_root, key)
        return key

    def _snapshot(self) -> RulesRecord:
        return replace(
            self._record,
            version=self._registry.version,
            current_scene=self._registry.current_scene,
            declarations=self._registry.declarations(),
            sub_packages=self._registry.sub_packages(),
        )

    def _commit(self, **changes: object) -> None:
        record = replace(self._snapshot(), **changes)
        self._store.save(record)
        self._record = record

    def _build_registry(self, record: RulesRecord) -> AssetRegistry:
        recording = self._config.recording
        return AssetRegistry(
            self._filesystem.exists,
            scene_extension=self._config.naming.scene_extension,
            content_prefix=self._config.validation.content_prefix,
            auto_record=recording.auto_record,
            validate_asset_path=recording.validate_asset_path,
            auto_group_by_directories=recording.auto_group_by_directories,
            declarations=record.declarations,
            sub_packages=record.sub_packages,
            current_scene=record.current_scene,
            version=record.version,
        )
