from __future__ import annotations

from collections.abc import Sequence

import pytest

from asset_bundler.analysis import OracleFailureError, PassCancelledError, ResolutionEngine
from asset_bundler.host import DependencyOracleError, GraphDependencyOracle
from asset_bundler.rules import AssetRegistry, NamingPolicy, ValidationRules

X = "Assets/Heroes/X.prefab"
Y = "Assets/Villains/Y.prefab"
Z = "Assets/Shared/Z.png"


class FakeFileSystem:
    def exists(self, asset_key: str) -> bool:
        return asset_key in {X, Y, Z}

    def is_directory(self, asset_key: str) -> bool:
        return False


class FailingOracle:
    def __init__(self, failing_key: str) -> None:
        self.failing_key = failing_key

    def get_dependencies(self, asset_keys: Sequence[str], recursive: bool = True) -> list[str]:
        if self.failing_key in asset_keys:
            raise DependencyOracleError("graph unavailable")
        return list(asset_keys)


def _registry() -> AssetRegistry:
    registry = AssetRegistry(FakeFileSystem().exists)
    registry.declare(X)
    registry.declare(Y)
    return registry


def _engine(oracle: object) -> ResolutionEngine:
    return ResolutionEngine(
        naming=NamingPolicy(),
        validation=ValidationRules(),
        oracle=oracle,  # type: ignore[arg-type]
        filesystem=FakeFileSystem(),
    )


def test_progress_is_reported_after_each_bundle_and_duplicate() -> None:
    calls: list[tuple[str, float]] = []

    def sink(label: str, fraction: float) -> bool:
        calls.append((label, fraction))
        return False

    engine = _engine(GraphDependencyOracle({X: [Z], Y: [Z]}))
    engine.analyze(_registry(), progress=sink)

    assert calls == [
        ("Analyzing dependencies 1/2: _x", 0.5),
        ("Analyzing dependencies 2/2: _y", 1.0),
        ("Promoting shared assets 1/1: Assets/Shared/Z.png", 1.0),
    ]


def test_cancellation_during_walk_aborts_the_pass() -> None:
    registry = _registry()
    engine = _engine(GraphDependencyOracle({}))

    with pytest.raises(PassCancelledError) as excinfo:
        engine.analyze(registry, progress=lambda label, fraction: True)

    assert excinfo.value.stage == "walk"
    assert excinfo.value.completed == 1
    assert excinfo.value.total == 2
    assert [item.asset_key for item in registry.declarations()] == [X, Y]


def test_cancellation_during_promotion_aborts_the_pass() -> None:
    engine = _engine(GraphDependencyOracle({X: [Z], Y: [Z]}))

    with pytest.raises(PassCancelledError) as excinfo:
        engine.analyze(
            _registry(),
            progress=lambda label, fraction: label.startswith("Promoting"),
        )

    assert excinfo.value.stage == "promote"


def test_oracle_failure_names_the_bundle() -> None:
    registry = _registry()
    engine = _engine(FailingOracle(Y))

    with pytest.raises(OracleFailureError) as excinfo:
        engine.analyze(registry)

    assert excinfo.value.bundle_name == "_y"
    assert "graph unavailable" in excinfo.value.message
    assert isinstance(excinfo.value.__cause__, DependencyOracleError)
    assert [item.asset_key for item in registry.declarations()] == [X, Y]


def test_empty_registry_produces_empty_plan() -> None:
    engine = _engine(GraphDependencyOracle({}))

    plan = engine.analyze(AssetRegistry(FakeFileSystem().exists))

    assert plan.bundles == ()
    assert plan.assignments == ()
    assert plan.audit.walked_bundle_count == 0
