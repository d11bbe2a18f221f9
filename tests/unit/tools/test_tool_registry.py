from __future__ import annotations

from pathlib import Path

import pytest

from asset_bundler.config import default_config
from asset_bundler.tools import ToolDispatchError, ToolRegistry
from asset_bundler.tools.builtin import register_builtin_tools
from asset_bundler.workspace import RulesWorkspace


def test_registry_keeps_deterministic_registration_order() -> None:
    registry = ToolRegistry()
    registry.register("rules.alpha", lambda _: {"tool": "alpha"})
    registry.register("rules.beta", lambda _: {"tool": "beta"})

    assert registry.names() == ("rules.alpha", "rules.beta")


def test_registry_dispatches_registered_tool() -> None:
    registry = ToolRegistry()
    registry.register("rules.echo", lambda payload: {"payload": payload})

    assert registry.dispatch("rules.echo", {"k": "v"}) == {"payload": {"k": "v"}}


def test_unknown_tool_raises_dispatch_error() -> None:
    with pytest.raises(ToolDispatchError) as excinfo:
        ToolRegistry().dispatch("rules.missing", {})

    assert excinfo.value.code == "UNKNOWN_TOOL"


def test_builtin_tools_are_registered_in_stable_order(tmp_path: Path) -> None:
    registry = ToolRegistry()
    workspace = RulesWorkspace(default_config(tmp_path))

    register_builtin_tools(registry, workspace, read_audit_entries=lambda since, limit: [])

    assert registry.names() == (
        "rules.status",
        "rules.declare",
        "rules.patch",
        "rules.record_load",
        "rules.analyze",
        "rules.bundles",
        "rules.bump_version",
        "rules.audit_log",
    )


@pytest.mark.parametrize(
    ("tool", "arguments"),
    [
        ("rules.declare", {}),
        ("rules.declare", {"paths": "Assets/A.png"}),
        ("rules.declare", {"paths": ["Assets/A.png", 3]}),
        ("rules.declare", {"paths": ["Assets/A.png"], "group_by": "by_color"}),
        ("rules.declare", {"paths": ["Assets/A.png"], "group_by": "explicit", "group": 5}),
        ("rules.patch", {"paths": []}),
        ("rules.record_load", {"path": ""}),
        ("rules.audit_log", {"limit": 0}),
    ],
)
def test_builtin_tools_reject_invalid_params(
    tmp_path: Path, tool: str, arguments: dict[str, object]
) -> None:
    registry = ToolRegistry()
    workspace = RulesWorkspace(default_config(tmp_path))
    register_builtin_tools(registry, workspace, read_audit_entries=lambda since, limit: [])

    with pytest.raises(ToolDispatchError) as excinfo:
        registry.dispatch(tool, arguments)

    assert excinfo.value.code == "INVALID_PARAMS"
    assert not (tmp_path / ".asset_bundler" / "rules.json").exists()


def test_audit_log_limit_is_capped(tmp_path: Path) -> None:
    requested: list[int] = []

    def read(since: str | None, limit: int) -> list[dict[str, object]]:
        requested.append(limit)
        return []

    registry = ToolRegistry()
    register_builtin_tools(registry, RulesWorkspace(default_config(tmp_path)), read)
    registry.dispatch("rules.audit_log", {"limit": 10_000})

    assert requested == [500]


@pytest.mark.parametrize("name", ["status", "rules.", "tools/call"])
def test_register_rejects_names_outside_rules_namespace(name: str) -> None:
    registry = ToolRegistry()

    with pytest.raises(ValueError):
        registry.register(name, lambda _: {})

    assert registry.names() == ()


def test_register_rejects_duplicate_tool_names() -> None:
    registry = ToolRegistry()
    registry.register("rules.echo", lambda _: {"first": True})

    with pytest.raises(ValueError):
        registry.register("rules.echo", lambda _: {"first": False})

    assert registry.dispatch("rules.echo", {}) == {"first": True}
