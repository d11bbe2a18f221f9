"""Four-phase resolution of declared rules into a bundle plan."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from asset_bundler.analysis.models import (
    ORIGIN_DECLARED,
    ORIGIN_INFERRED,
    ORIGIN_SHARED,
    SKIP_INVALID_NAME,
    SKIP_INVALID_PATH,
    SKIP_MISSING,
    SKIP_NO_GROUPING,
    AssetAssignment,
    BundlePlan,
    BundleRecord,
    PlanAudit,
    SkippedAsset,
)
from asset_bundler.analysis.tracker import DependencyTracker
from asset_bundler.host.filesystem import FileSystem
from asset_bundler.host.oracle import DependencyOracle, DependencyOracleError
from asset_bundler.rules.models import (
    GROUP_BY_DIRECTORY,
    GROUP_BY_FILENAME,
    GROUP_BY_NONE,
    InvalidDeclarationError,
    SubPackage,
)
from asset_bundler.rules.naming import NamingPolicy, group_name
from asset_bundler.rules.registry import AssetRegistry
from asset_bundler.rules.validation import ValidationRules


class ProgressSink(Protocol):
    """Advisory progress callback; returning True requests cancellation."""

    def __call__(self, label: str, fraction: float) -> bool:
        """Report progress for one unit of work."""


@dataclass(slots=True, frozen=True)
class OracleFailureError(Exception):
    """Raised when the dependency oracle fails for a bundle."""

    bundle_name: str
    message: str


@dataclass(slots=True, frozen=True)
class PassCancelledError(Exception):
    """Raised when the progress sink cancels an analysis pass."""

    stage: str
    completed: int
    total: int


@dataclass(slots=True)
class _PassState:
    """Mutable state owned by exactly one analysis pass."""

    resolved: dict[str, str]
    origins: dict[str, str]
    skipped: list[SkippedAsset]
    tracker: DependencyTracker


class ResolutionEngine:
    """Resolves declarations plus the dependency graph into a :class:`BundlePlan`.

    Phases run in strict order: seed, walk, promote, emit. Each call to
    :meth:`analyze` builds its own state and never mutates the registry, so a
    failed or cancelled pass leaves the declarations untouched.
    """

    def __init__(
        self,
        naming: NamingPolicy,
        validation: ValidationRules,
        oracle: DependencyOracle,
        filesystem: FileSystem,
    ) -> None:
        self._naming = naming
        self._validation = validation
        self._oracle = oracle
        self._filesystem = filesystem

    def analyze(self, registry: AssetRegistry, progress: ProgressSink | None = None) -> BundlePlan:
        """Run one full analysis pass."""
        state = _PassState(
            resolved={},
            origins={},
            skipped=[],
            tracker=DependencyTracker(self._naming),
        )
        self._seed(registry, state)
        walked = self._walk(state, progress)
        inferred, duplicates = self._promote(state, progress)
        return self._emit(registry, state, walked, inferred, duplicates)

    def _seed(self, registry: AssetRegistry, state: _PassState) -> None:
        for declaration in registry.declarations():
            key = declaration.asset_key
            if not self._validation.is_valid_asset(key):
                state.skipped.append(SkippedAsset(asset_key=key, reason=SKIP_INVALID_PATH))
                continue
            if not self._filesystem.exists(key):
                state.skipped.append(SkippedAsset(asset_key=key, reason=SKIP_MISSING))
                continue
            if declaration.group_by == GROUP_BY_NONE:
                state.skipped.append(SkippedAsset(asset_key=key, reason=SKIP_NO_GROUPING))
                continue

            try:
                if self._naming.is_scene(key):
                    # A scene always forms its own bundle named after the file.
                    name = group_name(self._naming, GROUP_BY_FILENAME, key)
                else:
                    name = group_name(
                        self._naming,
                        declaration.group_by,
                        key,
                        declaration.explicit_group,
                    )
            except InvalidDeclarationError:
                state.skipped.append(SkippedAsset(asset_key=key, reason=SKIP_INVALID_NAME))
                continue
            if name is None:
                state.skipped.append(SkippedAsset(asset_key=key, reason=SKIP_NO_GROUPING))
                continue
            state.resolved[key] = name
            state.origins[key] = ORIGIN_DECLARED

    def _walk(self, state: _PassState, progress: ProgressSink | None) -> int:
        seeded = _group_by_bundle(state.resolved)
        total = len(seeded)
        for index, (bundle_name, asset_keys) in enumerate(seeded.items()):
            try:
                dependencies = self._oracle.get_dependencies(asset_keys, recursive=True)
            except (DependencyOracleError, OSError) as error:
                raise OracleFailureError(bundle_name=bundle_name, message=str(error)) from error

            for dependency in dependencies:
                if self._filesystem.is_directory(dependency):
                    continue
                if self._validation.is_untracked_artifact(dependency):
                    continue
                if not self._validation.is_valid_asset(dependency):
                    continue
                state.tracker.track(dependency, bundle_name, state.resolved)

            label = f"Analyzing dependencies {index + 1}/{total}: {bundle_name}"
            if progress is not None and progress(label, (index + 1) / total):
                raise PassCancelledError(stage="walk", completed=index + 1, total=total)
        return total

    def _promote(self, state: _PassState, progress: ProgressSink | None) -> tuple[int, int]:
        tracker = state.tracker
        inferred = 0
        for asset_key, name in tracker.provisional().items():
            if tracker.reference_count(asset_key) == 1:
                state.resolved[asset_key] = name
                state.origins[asset_key] = ORIGIN_INFERRED
                inferred += 1

        duplicates = tracker.duplicates()
        total = len(duplicates)
        for index, asset_key in enumerate(duplicates):
            name = group_name(self._naming, GROUP_BY_DIRECTORY, asset_key, is_shared=True)
            if name is not None:
                state.resolved[asset_key] = name
                state.origins[asset_key] = ORIGIN_SHARED
            label = f"Promoting shared assets {index + 1}/{total}: {asset_key}"
            if progress is not None and progress(label, (index + 1) / total):
                raise PassCancelledError(stage="promote", completed=index + 1, total=total)
        return inferred, total

    def _emit(
        self,
        registry: AssetRegistry,
        state: _PassState,
        walked: int,
        inferred: int,
        duplicates: int,
    ) -> BundlePlan:
        grouped = _group_by_bundle(state.resolved)
        bundles = tuple(
            BundleRecord(bundle_name=name, asset_keys=tuple(sorted(keys)))
            for name, keys in sorted(grouped.items())
        )
        assignments = tuple(
            AssetAssignment(
                asset_key=key,
                bundle_name=state.resolved[key],
                origin=state.origins[key],
            )
            for key in sorted(state.resolved)
        )
        sub_packages = tuple(
            SubPackage(
                name=package.name,
                asset_keys=tuple(key for key in package.asset_keys if self._filesystem.exists(key)),
            )
            for package in registry.sub_packages()
        )
        seeded_count = sum(1 for origin in state.origins.values() if origin == ORIGIN_DECLARED)
        return BundlePlan(
            bundles=bundles,
            assignments=assignments,
            sub_packages=sub_packages,
            skipped=tuple(state.skipped),
            audit=PlanAudit(
                seeded_count=seeded_count,
                walked_bundle_count=walked,
                tracked_asset_count=state.tracker.tracked_count,
                inferred_count=inferred,
                duplicate_count=duplicates,
            ),
        )


def _group_by_bundle(resolved: dict[str, str]) -> dict[str, list[str]]:
    """Invert an asset-to-bundle map, keeping first-seen bundle order."""
    grouped: dict[str, list[str]] = {}
    for asset_key, bundle_name in resolved.items():
        grouped.setdefault(bundle_name, []).append(asset_key)
    return grouped
