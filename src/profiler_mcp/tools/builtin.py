"""Built-in profiler tools."""

from __future__ import annotations

import json
from datetime import datetime

from profiler_mcp.jsonrpc import INVALID_PARAMS
from profiler_mcp.security import SecurityLimits, enforce_list_limit, validate_token
from profiler_mcp.storage import (
    CollectorNotFoundError,
    ProfileRepository,
    ProfileSummary,
    collector_data,
)
from profiler_mcp.tools.registry import ToolDispatchError, ToolHandler, ToolRegistry, ToolSpec

NO_ENTRIES_MESSAGE = "No profiler entries found."
LIST_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

TOKEN_PROPERTY = {
    "type": "string",
    "description": "The profiler token (e.g., 8b7fa2)",
}


def register_builtin_tools(
    registry: ToolRegistry,
    repository: ProfileRepository,
    limits: SecurityLimits,
) -> None:
    """Register the profiler tool set in advertised order."""
    registry.register(
        ToolSpec(
            name="profiler_list",
            description="List recent Symfony profiler entries",
            input_schema={
                "type": "object",
                "properties": {
                    "limit": {
                        "type": "integer",
                        "description": "Maximum number of entries to return",
                        "default": limits.default_list_limit,
                        "minimum": 1,
                        "maximum": limits.max_list_limit,
                    },
                    "ip": {"type": "string", "description": "Filter by client IP"},
                    "url": {"type": "string", "description": "Filter by URL fragment"},
                    "method": {"type": "string", "description": "Filter by HTTP method"},
                    "status_code": {
                        "type": "integer",
                        "description": "Filter by response status code",
                    },
                },
            },
            handler=_list_handler(repository, limits),
        )
    )
    registry.register(
        ToolSpec(
            name="profiler_get_by_token",
            description="Access Symfony profiler data by token",
            input_schema=_token_schema(),
            handler=_get_by_token_handler(repository, limits),
        )
    )
    registry.register(
        ToolSpec(
            name="profiler_get_all_collector_by_token",
            description="List all available profiler collectors for a given token",
            input_schema=_token_schema(),
            handler=_all_collectors_handler(repository),
        )
    )
    registry.register(
        ToolSpec(
            name="profiler_get_one_collector_by_token",
            description="Get data for a specific profiler collector by token",
            input_schema=_token_schema(
                collector_name={
                    "type": "string",
                    "description": "The name of the collector (e.g., request, doctrine, logs)",
                }
            ),
            handler=_one_collector_handler(repository, limits),
        )
    )


def _token_schema(**extra: dict[str, object]) -> dict[str, object]:
    properties: dict[str, object] = {"token": TOKEN_PROPERTY}
    properties.update(extra)
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties.keys()),
    }


def _list_handler(repository: ProfileRepository, limits: SecurityLimits) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> str:
        limit = _optional_int(arguments, "limit")
        summaries = repository.find(
            limit=enforce_list_limit(
                limit if limit is not None else limits.default_list_limit, limits
            ),
            ip=_optional_str(arguments, "ip"),
            url=_optional_str(arguments, "url"),
            method=_optional_str(arguments, "method"),
            status_code=_optional_int(arguments, "status_code"),
        )
        if not summaries:
            return NO_ENTRIES_MESSAGE
        return _to_json([_summary_entry(summary) for summary in summaries])

    return handler


def _get_by_token_handler(repository: ProfileRepository, limits: SecurityLimits) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> str:
        profile = repository.load(validate_token(arguments.get("token")))
        collectors: dict[str, object] = {}
        for name, collector in profile.collectors.items():
            try:
                collectors[name] = collector_data(collector, max_depth=limits.max_dump_depth)
            except Exception as error:
                collectors[name] = {"error": f"Could not extract or serialize data: {error}"}
        return _to_json(
            {
                "token": profile.token,
                "ip": profile.ip,
                "method": profile.method,
                "url": profile.url,
                "time": profile.time,
                "status_code": profile.status_code,
                "collectors": collectors,
            }
        )

    return handler


def _all_collectors_handler(repository: ProfileRepository) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> str:
        profile = repository.load(validate_token(arguments.get("token")))
        return _to_json(profile.collector_names())

    return handler


def _one_collector_handler(repository: ProfileRepository, limits: SecurityLimits) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> str:
        token = validate_token(arguments.get("token"))
        collector_name = _required_str(arguments, "collector_name")
        profile = repository.load(token)
        if not profile.has_collector(collector_name):
            raise CollectorNotFoundError(token, collector_name)
        data = collector_data(
            profile.collectors[collector_name], max_depth=limits.max_dump_depth
        )
        return _to_json(data)

    return handler


def _summary_entry(summary: ProfileSummary) -> dict[str, object]:
    return {
        "token": summary.token,
        "ip": summary.ip,
        "method": summary.method,
        "url": summary.url,
        "time": format_profile_time(summary.time),
        "status_code": summary.status_code,
        "app": summary.app,
    }


def format_profile_time(timestamp: int) -> str:
    """Format an epoch timestamp the way PHP's date('Y-m-d H:i:s') does."""
    return datetime.fromtimestamp(timestamp).strftime(LIST_TIME_FORMAT)


def _to_json(payload: object) -> str:
    return json.dumps(payload, indent=4)


def _required_str(arguments: dict[str, object], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value:
        raise ToolDispatchError(
            code=INVALID_PARAMS, message=f"Argument '{key}' must be a non-empty string."
        )
    return value


def _optional_str(arguments: dict[str, object], key: str) -> str | None:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ToolDispatchError(code=INVALID_PARAMS, message=f"Argument '{key}' must be a string.")
    return value or None


def _optional_int(arguments: dict[str, object], key: str) -> int | None:
    value = arguments.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ToolDispatchError(
            code=INVALID_PARAMS, message=f"Argument '{key}' must be an integer."
        )
    return value
