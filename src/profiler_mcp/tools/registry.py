"""Deterministic tool registration primitives."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from profiler_mcp.jsonrpc import METHOD_NOT_FOUND

ToolHandler = Callable[[dict[str, object]], str]


@dataclass(slots=True, frozen=True)
class ToolDispatchError(Exception):
    """Represents deterministic tool dispatch failures."""

    code: int
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True, frozen=True)
class ToolSpec:
    """A callable tool and the metadata advertised by tools/list."""

    name: str
    description: str
    input_schema: dict[str, object]
    handler: ToolHandler

    def describe(self) -> dict[str, object]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass(slots=True)
class ToolRegistry:
    """In-memory tool registry preserving deterministic insertion order."""

    _tools: dict[str, ToolSpec] = field(default_factory=dict)

    def register(self, spec: ToolSpec) -> None:
        """Register a tool under its name."""
        self._tools[spec.name] = spec

    def get(self, name: str) -> ToolSpec | None:
        """Return a tool by name."""
        return self._tools.get(name)

    def names(self) -> tuple[str, ...]:
        """Return registered tool names in deterministic order."""
        return tuple(self._tools.keys())

    def describe(self) -> list[dict[str, object]]:
        """Return tools/list entries in registration order."""
        return [spec.describe() for spec in self._tools.values()]

    def dispatch(self, name: str, arguments: dict[str, object]) -> str:
        """Dispatch to a registered tool by name."""
        spec = self.get(name)
        if spec is None:
            raise ToolDispatchError(code=METHOD_NOT_FOUND, message=f"Unknown tool: {name}")
        return spec.handler(arguments)
