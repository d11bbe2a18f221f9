"""Typed models for bundle plans."""

from __future__ import annotations

from dataclasses import dataclass

from asset_bundler.rules.models import SubPackage

ORIGIN_DECLARED = "declared"
ORIGIN_INFERRED = "inferred"
ORIGIN_SHARED = "shared"

SKIP_INVALID_NAME = "invalid_name"
SKIP_INVALID_PATH = "invalid_path"
SKIP_MISSING = "missing"
SKIP_NO_GROUPING = "no_grouping"


@dataclass(slots=True, frozen=True)
class BundleRecord:
    """One deployable bundle and its member assets."""

    bundle_name: str
    asset_keys: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class AssetAssignment:
    """Final bundle for one asset and how it was decided."""

    asset_key: str
    bundle_name: str
    origin: str


@dataclass(slots=True, frozen=True)
class SkippedAsset:
    """Declaration that was not seeded."""

    asset_key: str
    reason: str


@dataclass(slots=True, frozen=True)
class PlanAudit:
    """Deterministic counters for one analysis pass."""

    seeded_count: int
    walked_bundle_count: int
    tracked_asset_count: int
    inferred_count: int
    duplicate_count: int


@dataclass(slots=True, frozen=True)
class BundlePlan:
    """Final asset-to-bundle mapping produced by one analysis pass."""

    bundles: tuple[BundleRecord, ...]
    assignments: tuple[AssetAssignment, ...]
    sub_packages: tuple[SubPackage, ...]
    skipped: tuple[SkippedAsset, ...]
    audit: PlanAudit

    def bundle_for(self, asset_key: str) -> str | None:
        for assignment in self.assignments:
            if assignment.asset_key == asset_key:
                return assignment.bundle_name
        return None

    def bundle_names(self) -> tuple[str, ...]:
        return tuple(bundle.bundle_name for bundle in self.bundles)

    def to_build_list(self) -> list[dict[str, object]]:
        """Return the list consumed by the archive-building step."""
        return [
            {"bundle_name": bundle.bundle_name, "asset_keys": list(bundle.asset_keys)}
            for bundle in self.bundles
        ]
