"""Built-in build-rules tools."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict

from asset_bundler.analysis import BundlePlan
from asset_bundler.rules import GROUP_BY_FILENAME, GROUP_BY_VALUES
from asset_bundler.tools.registry import ToolDispatchError, ToolHandler, ToolRegistry
from asset_bundler.workspace import RulesWorkspace

MAX_AUDIT_LIMIT = 500


def register_builtin_tools(
    registry: ToolRegistry,
    workspace: RulesWorkspace,
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
) -> None:
    """Register the build-rules tool set."""
    registry.register("rules.status", _status_handler(workspace))
    registry.register("rules.declare", _declare_handler(workspace))
    registry.register("rules.patch", _patch_handler(workspace))
    registry.register("rules.record_load", _record_load_handler(workspace))
    registry.register("rules.analyze", _analyze_handler(workspace))
    registry.register("rules.bundles", _bundles_handler(workspace))
    registry.register("rules.bump_version", _bump_version_handler(workspace))
    registry.register("rules.audit_log", _audit_log_handler(read_audit_entries))


def _status_handler(workspace: RulesWorkspace) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        return workspace.status()

    return handler


def _declare_handler(workspace: RulesWorkspace) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        paths = _paths_argument(arguments, "rules.declare")
        group_by = arguments.get("group_by", GROUP_BY_FILENAME)
        if not isinstance(group_by, str) or group_by not in GROUP_BY_VALUES:
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message=f"rules.declare group_by must be one of {', '.join(GROUP_BY_VALUES)}.",
            )
        group = arguments.get("group")
        if group is not None and not isinstance(group, str):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="rules.declare group must be a string.",
            )
        declared = workspace.declare(paths, group_by, group)
        return {
            "declared": [asdict(item) for item in declared],
            "current_scene": workspace.registry.current_scene,
        }

    return handler


def _patch_handler(workspace: RulesWorkspace) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        paths = _paths_argument(arguments, "rules.patch")
        package = workspace.patch(paths)
        if package is None:
            return {"sub_package": None, "__warnings__": ["No current scene; nothing recorded."]}
        return {"sub_package": {"name": package.name, "asset_keys": list(package.asset_keys)}}

    return handler


def _record_load_handler(workspace: RulesWorkspace) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path = arguments.get("path")
        if not isinstance(path, str) or not path:
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="rules.record_load path must be a non-empty string.",
            )
        declaration, warning = workspace.record_load(path)
        result: dict[str, object] = {
            "declared": asdict(declaration) if declaration is not None else None,
        }
        if warning is not None:
            result["__warnings__"] = [warning]
        return result

    return handler


def _analyze_handler(workspace: RulesWorkspace) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        plan = workspace.analyze()
        return plan_to_dict(plan)

    return handler


def _bundles_handler(workspace: RulesWorkspace) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        return {
            "bundles": workspace.bundles(),
            "last_analysis_timestamp": workspace.record.last_analysis_timestamp,
        }

    return handler


def _bump_version_handler(workspace: RulesWorkspace) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        return {"version": workspace.bump_version()}

    return handler


def _audit_log_handler(
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        since_value = arguments.get("since")
        since = since_value if isinstance(since_value, str) else None
        limit_value = arguments.get("limit", 50)
        if not isinstance(limit_value, int) or limit_value < 1:
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="rules.audit_log limit must be a positive integer.",
            )
        limit = min(limit_value, MAX_AUDIT_LIMIT)
        return {"entries": read_audit_entries(since, limit)}

    return handler


def plan_to_dict(plan: BundlePlan) -> dict[str, object]:
    """Serialize a plan for tool responses."""
    return {
        "bundles": plan.to_build_list(),
        "assignments": [asdict(item) for item in plan.assignments],
        "sub_packages": [
            {"name": item.name, "asset_keys": list(item.asset_keys)} for item in plan.sub_packages
        ],
        "skipped": [asdict(item) for item in plan.skipped],
        "audit": asdict(plan.audit),
    }


def _paths_argument(arguments: dict[str, object], tool: str) -> list[str]:
    paths = arguments.get("paths")
    if not isinstance(paths, list) or not paths:
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message=f"{tool} paths must be a non-empty list of strings.",
        )
    output: list[str] = []
    for item in paths:
        if not isinstance(item, str) or not item:
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message=f"{tool} paths must contain only non-empty strings.",
            )
        output.append(item)
    return output
