from __future__ import annotations

import json
from pathlib import Path

import pytest

from asset_bundler.host import (
    DependencyOracleError,
    FileDependencyOracle,
    GraphDependencyOracle,
    load_dependency_graph,
)


def test_closure_lists_inputs_first_then_depth_first_dependencies() -> None:
    oracle = GraphDependencyOracle(
        {
            "Assets/A.prefab": ["Assets/B.mat", "Assets/C.png"],
            "Assets/B.mat": ["Assets/D.shader"],
            "Assets/C.png": ["Assets/B.mat"],
        }
    )

    assert oracle.get_dependencies(["Assets/A.prefab"]) == [
        "Assets/A.prefab",
        "Assets/B.mat",
        "Assets/D.shader",
        "Assets/C.png",
    ]


def test_non_recursive_lookup_returns_direct_edges_only() -> None:
    oracle = GraphDependencyOracle(
        {"Assets/A.prefab": ["Assets/B.mat"], "Assets/B.mat": ["Assets/D.shader"]}
    )

    assert oracle.get_dependencies(["Assets/A.prefab"], recursive=False) == [
        "Assets/A.prefab",
        "Assets/B.mat",
    ]


def test_cycles_terminate() -> None:
    oracle = GraphDependencyOracle(
        {"Assets/A.png": ["Assets/B.png"], "Assets/B.png": ["Assets/A.png"]}
    )

    assert oracle.get_dependencies(["Assets/A.png"]) == ["Assets/A.png", "Assets/B.png"]


def test_graph_keys_are_normalized() -> None:
    oracle = GraphDependencyOracle({r"Assets\A.png": [r"Assets\Sub\B.png"]})

    assert oracle.get_dependencies(["Assets/A.png"]) == ["Assets/A.png", "Assets/Sub/B.png"]


def test_missing_graph_file_is_an_empty_graph(tmp_path: Path) -> None:
    assert load_dependency_graph(tmp_path / "dependencies.json") == {}


def test_invalid_graph_files_raise(tmp_path: Path) -> None:
    path = tmp_path / "dependencies.json"

    path.write_text("{not-json", encoding="utf-8")
    with pytest.raises(DependencyOracleError):
        load_dependency_graph(path)

    path.write_text(json.dumps(["Assets/A.png"]), encoding="utf-8")
    with pytest.raises(DependencyOracleError):
        load_dependency_graph(path)

    path.write_text(json.dumps({"Assets/A.png": "Assets/B.png"}), encoding="utf-8")
    with pytest.raises(DependencyOracleError) as excinfo:
        load_dependency_graph(path)
    assert "Assets/A.png" in str(excinfo.value)


def test_file_oracle_reads_current_graph_on_every_query(tmp_path: Path) -> None:
    path = tmp_path / "dependencies.json"
    oracle = FileDependencyOracle(path)

    assert oracle.get_dependencies(["Assets/A.png"]) == ["Assets/A.png"]

    path.write_text(json.dumps({"Assets/A.png": ["Assets/B.png"]}), encoding="utf-8")

    assert oracle.get_dependencies(["Assets/A.png"]) == ["Assets/A.png", "Assets/B.png"]


def test_graph_file_with_invalid_utf8_raises_oracle_error(tmp_path: Path) -> None:
    path = tmp_path / "dependencies.json"
    path.write_bytes(b'{"Assets/A.png": ["\xff\xfe"]}')

    with pytest.raises(DependencyOracleError) as excinfo:
        load_dependency_graph(path)

    assert "dependencies.json" in str(excinfo.value)
