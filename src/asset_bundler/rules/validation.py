"""Asset key normalization and trackability rules."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

DEFAULT_CONTENT_PREFIX = "Assets/"
DEFAULT_EXCLUDED_EXTENSIONS = (".dll", ".cs", ".meta", ".js", ".boo")
DEFAULT_UNTRACKED_SUFFIXES = (".spriteatlas", ".giparams", "LightingData.asset")


@dataclass(slots=True, frozen=True)
class ValidationRules:
    """Which asset keys may be seeded and tracked."""

    content_prefix: str = DEFAULT_CONTENT_PREFIX
    excluded_extensions: tuple[str, ...] = DEFAULT_EXCLUDED_EXTENSIONS
    untracked_suffixes: tuple[str, ...] = DEFAULT_UNTRACKED_SUFFIXES

    def is_valid_asset(self, asset_key: str) -> bool:
        """Return True when the key lives under the content root and is not code or metadata."""
        if not asset_key.startswith(self.content_prefix):
            return False
        suffix = PurePosixPath(asset_key).suffix.lower()
        return suffix not in {ext.lower() for ext in self.excluded_extensions}

    def is_untracked_artifact(self, asset_key: str) -> bool:
        """Return True for generated artifacts that never take part in tracking."""
        return any(asset_key.endswith(suffix) for suffix in self.untracked_suffixes)


def normalize_asset_key(raw: str) -> str:
    """Normalize separators and redundant segments of a path-like asset key."""
    normalized = raw.replace("\\", "/").strip()
    while "//" in normalized:
        normalized = normalized.replace("//", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized
