"""Per-pass bookkeeping of which bundles reference which assets."""

from __future__ import annotations

from collections.abc import Mapping

from asset_bundler.rules.models import GROUP_BY_EXPLICIT
from asset_bundler.rules.naming import NamingPolicy, group_name, strip_extension


class DependencyTracker:
    """Accumulates reference sets, provisional owners and duplicates for one pass.

    An asset without a seeded bundle is provisionally folded into a
    ``children_`` bundle named after the bundle that referenced it. Later
    bundles overwrite that provisional owner, and once a second distinct
    bundle references the asset it is flagged as a duplicate.
    """

    def __init__(self, policy: NamingPolicy) -> None:
        self._policy = policy
        self._references: dict[str, set[str]] = {}
        self._provisional: dict[str, str] = {}
        self._duplicates: dict[str, None] = {}

    def track(self, asset_key: str, owning_bundle: str, resolved: Mapping[str, str]) -> None:
        """Record one (dependency, referencing bundle) edge."""
        references = self._references.setdefault(asset_key, set())
        references.add(owning_bundle)

        if asset_key in resolved:
            return

        name = group_name(
            self._policy,
            GROUP_BY_EXPLICIT,
            asset_key,
            strip_extension(self._policy, owning_bundle),
            is_child=True,
        )
        if name is not None:
            self._provisional[asset_key] = name
        if len(references) >= 2:
            self._duplicates.setdefault(asset_key, None)

    def reference_count(self, asset_key: str) -> int:
        return len(self._references.get(asset_key, ()))

    def referencing_bundles(self, asset_key: str) -> tuple[str, ...]:
        return tuple(sorted(self._references.get(asset_key, ())))

    def provisional(self) -> dict[str, str]:
        """Return provisional names in first-tracked order."""
        return dict(self._provisional)

    def duplicates(self) -> tuple[str, ...]:
        """Return duplicate asset keys in the order they were flagged."""
        return tuple(self._duplicates)

    @property
    def tracked_count(self) -> int:
        return len(self._references)
