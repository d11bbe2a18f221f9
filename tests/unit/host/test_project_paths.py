from __future__ import annotations

from pathlib import Path

import pytest

from asset_bundler.host import LocalFileSystem, PathBlockedError, resolve_project_path


def test_windows_separator_key_resolves_to_same_file(tmp_path: Path) -> None:
    target = tmp_path / "Assets" / "UI" / "Title.prefab"
    target.parent.mkdir(parents=True)
    target.write_text("prefab", encoding="utf-8")

    resolved = resolve_project_path(tmp_path, r"Assets\UI\Title.prefab")

    assert resolved == target.resolve()


@pytest.mark.parametrize(
    ("asset_key", "reason"),
    [
        ("", "Asset key is empty."),
        ("/etc/passwd", "Absolute asset keys are not allowed."),
        ("C:/Windows/win.ini", "Absolute asset keys are not allowed."),
        ("Assets/../../secrets.txt", "Path traversal is blocked."),
    ],
)
def test_escaping_keys_are_blocked(tmp_path: Path, asset_key: str, reason: str) -> None:
    with pytest.raises(PathBlockedError) as excinfo:
        resolve_project_path(tmp_path, asset_key)

    assert excinfo.value.reason == reason
    assert excinfo.value.hint


def test_local_filesystem_distinguishes_files_and_directories(tmp_path: Path) -> None:
    (tmp_path / "Assets" / "UI").mkdir(parents=True)
    (tmp_path / "Assets" / "UI" / "Title.prefab").write_text("prefab", encoding="utf-8")
    filesystem = LocalFileSystem(tmp_path)

    assert filesystem.exists("Assets/UI/Title.prefab")
    assert not filesystem.is_directory("Assets/UI/Title.prefab")
    assert filesystem.is_directory("Assets/UI")
    assert not filesystem.exists("Assets/UI")
    assert not filesystem.exists("Assets/UI/Missing.prefab")


def test_local_filesystem_reports_blocked_keys_as_absent(tmp_path: Path) -> None:
    filesystem = LocalFileSystem(tmp_path / "project")

    assert not filesystem.exists("../outside.txt")
    assert not filesystem.is_directory("/")
