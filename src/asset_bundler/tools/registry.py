"""Named tool handlers dispatched by the server."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

ToolHandler = Callable[[dict[str, object]], dict[str, object]]

# Every build-rules tool lives under one method namespace.
TOOL_NAMESPACE = "rules."


@dataclass(slots=True, frozen=True)
class ToolDispatchError(Exception):
    """Request-level failure with a stable error code."""

    code: str
    message: str


@dataclass(slots=True)
class ToolRegistry:
    """Build-rules tool handlers keyed by method name, in registration order."""

    _handlers: dict[str, ToolHandler] = field(default_factory=dict)

    def register(self, name: str, handler: ToolHandler) -> None:
        """Register a handler; names are unique and namespaced under ``rules.``."""
        if not name.startswith(TOOL_NAMESPACE) or name == TOOL_NAMESPACE:
            raise ValueError(f"Tool name must start with '{TOOL_NAMESPACE}': {name}")
        if name in self._handlers:
            raise ValueError(f"Tool already registered: {name}")
        self._handlers[name] = handler

    def names(self) -> tuple[str, ...]:
        return tuple(self._handlers.keys())

    def dispatch(self, name: str, arguments: dict[str, object]) -> dict[str, object]:
        handler = self._handlers.get(name)
        if handler is None:
            raise ToolDispatchError(code="UNKNOWN_TOOL", message=f"Unknown tool: {name}")
        return handler(arguments)
