"""Typed models for declared build rules."""

from __future__ import annotations

from dataclasses import dataclass, replace

GROUP_BY_NONE = "none"
GROUP_BY_EXPLICIT = "explicit"
GROUP_BY_FILENAME = "filename"
GROUP_BY_DIRECTORY = "directory"

GROUP_BY_VALUES = (
    GROUP_BY_NONE,
    GROUP_BY_EXPLICIT,
    GROUP_BY_FILENAME,
    GROUP_BY_DIRECTORY,
)


@dataclass(slots=True, frozen=True)
class InvalidDeclarationError(Exception):
    """Raised when a declaration cannot produce a bundle name."""

    asset_key: str
    message: str


@dataclass(slots=True, frozen=True)
class AssetDeclaration:
    """Declared grouping for one asset key."""

    asset_key: str
    group_by: str = GROUP_BY_FILENAME
    explicit_group: str | None = None


@dataclass(slots=True, frozen=True)
class SubPackage:
    """Assets recorded while a scene was current."""

    name: str
    asset_keys: tuple[str, ...]

    def with_asset(self, asset_key: str) -> SubPackage:
        """Return a copy with one more asset, keeping keys unique."""
        if asset_key in self.asset_keys:
            return self
        return replace(self, asset_keys=(*self.asset_keys, asset_key))


@dataclass(slots=True, frozen=True)
class RulesVersion:
    """Three-part rules version."""

    major: int = 0
    minor: int = 0
    build: int = 0

    def bump(self) -> RulesVersion:
        return replace(self, build=self.build + 1)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.build}"
