"""Path resolution helpers for project-scoped asset access."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

WINDOWS_ABSOLUTE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z]:[\\/]")


class PathBlockedError(Exception):
    """Raised when an asset key points outside the project root."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def resolve_project_path(project_root: Path, asset_key: str) -> Path:
    """Resolve an asset key against the project root, refusing escapes."""
    root = project_root.resolve()
    normalized = asset_key.replace("\\", "/")

    if not normalized:
        raise PathBlockedError(
            reason="Asset key is empty.",
            hint="Provide a project-relative key such as 'Assets/UI/Title.prefab'.",
        )

    if normalized.startswith("/") or WINDOWS_ABSOLUTE_PATTERN.match(normalized):
        raise PathBlockedError(
            reason="Absolute asset keys are not allowed.",
            hint="Use a key relative to the project root.",
        )

    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    if any(part == ".." for part in parts):
        raise PathBlockedError(
            reason="Path traversal is blocked.",
            hint="Remove '..' segments from the asset key.",
        )

    resolved = (root / Path(*parts)).resolve(strict=False)
    if not resolved.is_relative_to(root):
        raise PathBlockedError(
            reason="Resolved path escapes project_root.",
            hint="Use an asset located under the configured project root.",
        )
    return resolved
