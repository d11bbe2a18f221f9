"""Dependency oracle backed by a direct-edge dependency graph."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Protocol

from asset_bundler.rules.validation import normalize_asset_key


class DependencyOracleError(Exception):
    """Raised when dependency information cannot be produced."""


class DependencyOracle(Protocol):
    """Transitive dependency lookup consumed by the resolution engine."""

    def get_dependencies(self, asset_keys: Sequence[str], recursive: bool = True) -> list[str]:
        """Return the dependency closure of ``asset_keys``, inputs included."""


class GraphDependencyOracle:
    """Answers closure queries from an in-memory ``asset -> direct deps`` mapping."""

    def __init__(self, edges: Mapping[str, Iterable[str]]) -> None:
        self._edges: dict[str, tuple[str, ...]] = {
            normalize_asset_key(source): tuple(normalize_asset_key(dep) for dep in deps)
            for source, deps in edges.items()
        }

    def get_dependencies(self, asset_keys: Sequence[str], recursive: bool = True) -> list[str]:
        """Return inputs first, then dependencies in depth-first edge order, without repeats."""
        ordered: dict[str, None] = {}
        for key in asset_keys:
            ordered.setdefault(normalize_asset_key(key), None)
        if not recursive:
            for key in list(ordered):
                for dep in self._edges.get(key, ()):
                    ordered.setdefault(dep, None)
            return list(ordered)

        stack = list(reversed(list(ordered)))
        visited: set[str] = set()
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            ordered.setdefault(current, None)
            for dep in reversed(self._edges.get(current, ())):
                if dep not in visited:
                    stack.append(dep)
        return list(ordered)


def load_dependency_graph(path: Path) -> dict[str, list[str]]:
    """Load a JSON object of direct dependencies; a missing file is an empty graph."""
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (json.JSONDecodeError, UnicodeDecodeError) as error:
        raise DependencyOracleError(f"Dependency graph is not valid JSON: {path}") from error
    if not isinstance(payload, dict):
        raise DependencyOracleError(f"Dependency graph must be a JSON object: {path}")
    graph: dict[str, list[str]] = {}
    for source, deps in payload.items():
        if not isinstance(deps, list) or not all(isinstance(dep, str) for dep in deps):
            raise DependencyOracleError(
                f"Dependencies of '{source}' must be a list of strings: {path}"
            )
        graph[source] = list(deps)
    return graph


class FileDependencyOracle:
    """Re-reads a dependency graph file on every query so answers track on-disk state."""

    def __init__(self, graph_path: Path) -> None:
        self._graph_path = graph_path

    @property
    def graph_path(self) -> Path:
        return self._graph_path

    def get_dependencies(self, asset_keys: Sequence[str], recursive: bool = True) -> list[str]:
        oracle = GraphDependencyOracle(load_dependency_graph(self._graph_path))
        return oracle.get_dependencies(asset_keys, recursive=recursive)
