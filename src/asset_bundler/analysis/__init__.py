"""Dependency analysis and bundle plan resolution."""

from .engine import OracleFailureError, PassCancelledError, ProgressSink, ResolutionEngine
from .models import (
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
from .tracker import DependencyTracker

__all__ = [
    "AssetAssignment",
    "BundlePlan",
    "BundleRecord",
    "DependencyTracker",
    "ORIGIN_DECLARED",
    "ORIGIN_INFERRED",
    "ORIGIN_SHARED",
    "OracleFailureError",
    "PassCancelledError",
    "PlanAudit",
    "ProgressSink",
    "ResolutionEngine",
    "SKIP_INVALID_NAME",
    "SKIP_INVALID_PATH",
    "SKIP_MISSING",
    "SKIP_NO_GROUPING",
    "SkippedAsset",
]
