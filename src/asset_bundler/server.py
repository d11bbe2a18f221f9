"""STDIO JSON-lines server entrypoint."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from asset_bundler.analysis import OracleFailureError, PassCancelledError
from asset_bundler.config import BundlerConfig, CliOverrides, load_effective_config
from asset_bundler.host import PathBlockedError
from asset_bundler.logging import AuditEvent, JsonlAuditLogger, sanitize_arguments, utc_timestamp
from asset_bundler.rules import InvalidDeclarationError, RulesSchemaUnsupportedError
from asset_bundler.tools.builtin import register_builtin_tools
from asset_bundler.tools.registry import ToolDispatchError, ToolRegistry
from asset_bundler.workspace import RulesWorkspace


@dataclass(slots=True, frozen=True)
class Request:
    """Normalized incoming request."""

    request_id: str
    method: str
    params: dict[str, object]


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for server startup configuration."""
    parser = argparse.ArgumentParser(prog="asset-bundler")
    parser.add_argument("--project-root", required=False, default=".")
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--extension", required=False, default=None)
    parser.add_argument("--name-by-hash", choices=("true", "false"), required=False, default=None)
    parser.add_argument("--auto-record", choices=("true", "false"), required=False, default=None)
    return parser


class StdioServer:
    """Routes JSON-line tool requests to the rules workspace."""

    def __init__(self, config: BundlerConfig) -> None:
        self._config = config
        self._audit_logger = JsonlAuditLogger(path=config.data_dir / "audit.jsonl")
        self._workspace: RulesWorkspace | None = None
        self._fallback_request_counter = 0

    @property
    def workspace(self) -> RulesWorkspace:
        """Workspace for the project, loaded from the rules record on first use."""
        if self._workspace is None:
            self._workspace = RulesWorkspace(self._config)
        return self._workspace

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Process JSON-line requests from stdin and write JSON-line responses."""
        for raw_line in in_stream:
            line = raw_line.strip()
            if not line:
                continue
            response = self.handle_json_line(line)
            out_stream.write(f"{json.dumps(response, sort_keys=True)}\n")
            out_stream.flush()

    def handle_json_line(self, raw_line: str) -> dict[str, object]:
        """Handle a single JSON-line request."""
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            request_id = self.next_request_id()
            response = self.error_response(
                request_id=request_id,
                code="INVALID_JSON",
                message="Request must be valid JSON.",
            )
            self.log_request(
                request_id=request_id,
                tool_name="invalid_json",
                arguments={"raw_line_length": len(raw_line)},
                response=response,
            )
            return response
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object]:
        """Validate and dispatch a parsed payload."""
        parsed = self.parse_request(payload)
        if isinstance(parsed, dict):
            request_id_value = parsed.get("request_id")
            request_id = (
                request_id_value if isinstance(request_id_value, str) else self.next_request_id()
            )
            self.log_request(
                request_id=request_id,
                tool_name="invalid_request",
                arguments={},
                response=parsed,
            )
            return parsed

        request = parsed
        if request.method == "tools/call":
            tool_name_value = request.params.get("name")
            arguments_value = request.params.get("arguments", {})
            if not isinstance(tool_name_value, str) or not tool_name_value:
                return self.error_response(
                    request_id=request.request_id,
                    code="INVALID_PARAMS",
                    message="tools/call params.name must be a non-empty string.",
                )
            if not isinstance(arguments_value, dict):
                return self.error_response(
                    request_id=request.request_id,
                    code="INVALID_PARAMS",
                    message="tools/call params.arguments must be an object.",
                )
            tool_name = tool_name_value
            arguments = arguments_value
        else:
            tool_name = request.method
            arguments = request.params

        try:
            registry = self._build_registry()
            result = registry.dispatch(name=tool_name, arguments=arguments)
        except PathBlockedError as error:
            response = self.blocked_response(
                request_id=request.request_id,
                reason=error.reason,
                hint=error.hint,
            )
        except ToolDispatchError as error:
            response = self.error_response(request.request_id, error.code, error.message)
        except InvalidDeclarationError as error:
            response = self.error_response(
                request.request_id, "INVALID_DECLARATION", error.message
            )
        except OracleFailureError as error:
            response = self.error_response(
                request.request_id,
                "ORACLE_FAILURE",
                f"Dependency lookup failed for bundle '{error.bundle_name}': {error.message}",
            )
        except PassCancelledError as error:
            response = self.error_response(
                request.request_id,
                "PASS_CANCELLED",
                f"Analysis cancelled during {error.stage} ({error.completed}/{error.total}).",
            )
        except RulesSchemaUnsupportedError as error:
            response = self.error_response(
                request.request_id,
                "RULES_SCHEMA_UNSUPPORTED",
                f"Stored rules schema {error.found} is unsupported; expected {error.expected}.",
            )
        except Exception:
            response = self.error_response(
                request.request_id,
                "INTERNAL_ERROR",
                "Unhandled server error while executing tool.",
            )
        else:
            warnings = _extract_result_warnings(result)
            response = self.success_response(
                request_id=request.request_id,
                result=result,
                warnings=warnings,
            )

        self.log_request(
            request_id=request.request_id,
            tool_name=tool_name,
            arguments=arguments,
            response=response,
        )
        return response

    def parse_request(self, payload: object) -> Request | dict[str, object]:
        """Validate request payload and return normalized Request."""
        if not isinstance(payload, dict):
            return self.error_response(
                request_id=self.next_request_id(),
                code="INVALID_REQUEST",
                message="Request must be an object.",
            )

        request_id = self.extract_request_id(payload.get("id"))
        method = payload.get("method")
        params = payload.get("params", {})

        if not isinstance(method, str) or not method:
            return self.error_response(
                request_id=request_id,
                code="INVALID_REQUEST",
                message="Request method must be a non-empty string.",
            )
        if not isinstance(params, dict):
            return self.error_response(
                request_id=request_id,
                code="INVALID_PARAMS",
                message="Request params must be an object.",
            )

        return Request(request_id=request_id, method=method, params=params)

    def extract_request_id(self, request_id: object) -> str:
        """Extract request ID from payload or synthesize deterministic fallback."""
        if isinstance(request_id, str) and request_id:
            return request_id
        if isinstance(request_id, int):
            return str(request_id)
        return self.next_request_id()

    def next_request_id(self) -> str:
        """Generate deterministic fallback request IDs for invalid/missing IDs."""
        self._fallback_request_counter += 1
        return f"req-{self._fallback_request_counter:06d}"

    @staticmethod
    def success_response(
        request_id: str,
        result: dict[str, object],
        warnings: list[str] | None = None,
    ) -> dict[str, object]:
        """Build success envelope."""
        return {
            "request_id": request_id,
            "ok": True,
            "result": result,
            "warnings": warnings or [],
            "blocked": False,
        }

    @staticmethod
    def error_response(request_id: str, code: str, message: str) -> dict[str, object]:
        """Build explicit error envelope."""
        return {
            "request_id": request_id,
            "ok": False,
            "result": {},
            "warnings": [],
            "blocked": False,
            "error": {"code": code, "message": message},
        }

    @staticmethod
    def blocked_response(request_id: str, reason: str, hint: str) -> dict[str, object]:
        """Build explicit blocked response envelope."""
        return {
            "request_id": request_id,
            "ok": False,
            "result": {"reason": reason, "hint": hint},
            "warnings": [],
            "blocked": True,
            "error": {"code": "PATH_BLOCKED", "message": reason},
        }

    def log_request(
        self,
        request_id: str,
        tool_name: str,
        arguments: dict[str, object],
        response: dict[str, object],
    ) -> None:
        """Log one sanitized request event."""
        error_payload = response.get("error")
        error_code: str | None = None
        if isinstance(error_payload, dict):
            code_value = error_payload.get("code")
            if isinstance(code_value, str):
                error_code = code_value
        metadata = sanitize_arguments(arguments)
        result = response.get("result")
        if tool_name == "rules.analyze" and isinstance(result, dict):
            audit = result.get("audit")
            if isinstance(audit, dict):
                metadata["plan"] = dict(audit)
        event = AuditEvent(
            timestamp=utc_timestamp(),
            request_id=request_id,
            tool=tool_name,
            ok=bool(response.get("ok", False)),
            blocked=bool(response.get("blocked", False)),
            error_code=error_code,
            metadata=metadata,
        )
        self._audit_logger.append(event)

    def _build_registry(self) -> ToolRegistry:
        registry = ToolRegistry()
        register_builtin_tools(
            registry,
            workspace=self.workspace,
            read_audit_entries=self._audit_logger.read,
        )
        return registry


def create_server(project_root: str, cli_overrides: CliOverrides | None = None) -> StdioServer:
    """Create a configured STDIO server instance."""
    config = load_effective_config(
        project_root=Path(project_root).resolve(), overrides=cli_overrides
    )
    return StdioServer(config=config)


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the asset bundler server process."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    overrides = CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        extension=args.extension,
        name_by_hash=_optional_flag(args.name_by_hash),
        auto_record=_optional_flag(args.auto_record),
    )
    server = create_server(project_root=args.project_root, cli_overrides=overrides)
    server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    return 0


def _optional_flag(value: str | None) -> bool | None:
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _extract_result_warnings(result: dict[str, object]) -> list[str]:
    raw = result.pop("__warnings__", None)
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, str)]


if __name__ == "__main__":
    raise SystemExit(main())
