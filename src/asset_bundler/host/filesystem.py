"""Filesystem collaborator answering existence questions for asset keys."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from asset_bundler.host.paths import PathBlockedError, resolve_project_path


class FileSystem(Protocol):
    """Existence checks consumed by the registry and the resolution engine."""

    def exists(self, asset_key: str) -> bool:
        """Return True when the key names an existing file."""

    def is_directory(self, asset_key: str) -> bool:
        """Return True when the key names an existing directory."""


class LocalFileSystem:
    """Answers existence checks against a project directory on disk.

    Keys that escape the project root are reported as absent.
    """

    def __init__(self, project_root: Path) -> None:
        self._project_root = project_root.resolve()

    @property
    def project_root(self) -> Path:
        return self._project_root

    def exists(self, asset_key: str) -> bool:
        try:
            resolved = resolve_project_path(self._project_root, asset_key)
        except PathBlockedError:
            return False
        return resolved.is_file()

    def is_directory(self, asset_key: str) -> bool:
        try:
            resolved = resolve_project_path(self._project_root, asset_key)
        except PathBlockedError:
            return False
        return resolved.is_dir()
