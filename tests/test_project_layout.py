from __future__ import annotations

from pathlib import Path


def test_required_package_paths_exist() -> None:
    root = Path(__file__).resolve().parents[1]
    required = [
        "src/asset_bundler/server.py",
        "src/asset_bundler/workspace.py",
        "src/asset_bundler/config.py",
        "src/asset_bundler/rules/__init__.py",
        "src/asset_bundler/analysis/__init__.py",
        "src/asset_bundler/host/__init__.py",
        "src/asset_bundler/tools/__init__.py",
        "src/asset_bundler/logging/__init__.py",
    ]
    for rel in required:
        assert (root / rel).exists(), rel
