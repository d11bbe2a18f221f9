"""Host collaborators: filesystem checks, dependency oracle and path sandbox."""

from .filesystem import FileSystem, LocalFileSystem
from .oracle import (
    DependencyOracle,
    DependencyOracleError,
    FileDependencyOracle,
    GraphDependencyOracle,
    load_dependency_graph,
)
from .paths import PathBlockedError, resolve_project_path

__all__ = [
    "DependencyOracle",
    "DependencyOracleError",
    "FileDependencyOracle",
    "FileSystem",
    "GraphDependencyOracle",
    "LocalFileSystem",
    "PathBlockedError",
    "load_dependency_graph",
    "resolve_project_path",
]
