from __future__ import annotations

from pathlib import Path

import pytest

from asset_bundler.config import load_effective_config
from asset_bundler.server import create_server


def _write_config(tmp_path: Path, *lines: str) -> None:
    (tmp_path / "asset_bundler.toml").write_text("\n".join(lines), encoding="utf-8")


def test_invalid_bool_type_raises_value_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "[naming]", 'name_by_hash = "yes"')

    with pytest.raises(ValueError, match="naming.name_by_hash"):
        create_server(project_root=str(tmp_path))


def test_invalid_string_type_raises_value_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "[content]", "prefix = 3")

    with pytest.raises(ValueError, match="content.prefix"):
        load_effective_config(tmp_path)


def test_invalid_list_member_raises_value_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "[content]", 'excluded_extensions = [".cs", 4]')

    with pytest.raises(ValueError, match="content.excluded_extensions"):
        load_effective_config(tmp_path)


def test_section_must_be_a_table(tmp_path: Path) -> None:
    _write_config(tmp_path, 'recording = "on"')

    with pytest.raises(ValueError, match="recording"):
        load_effective_config(tmp_path)


def test_reserved_groups_require_group_names(tmp_path: Path) -> None:
    _write_config(tmp_path, "[naming]", 'reserved_groups = { ".shader" = "" }')

    with pytest.raises(ValueError, match="naming.reserved_groups"):
        load_effective_config(tmp_path)


def test_empty_dependency_graph_path_is_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, "[dependencies]", 'graph = ""')

    with pytest.raises(ValueError, match="dependencies.graph"):
        load_effective_config(tmp_path)
