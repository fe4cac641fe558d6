"""STDIO MCP server entrypoint."""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from types import FrameType
from typing import TextIO

from profiler_mcp.config import CliOverrides, ServerConfig, load_effective_config
from profiler_mcp.jsonrpc import (
    APPLICATION_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    MCP_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
)
from profiler_mcp.logging import AuditEvent, JsonlAuditLogger
from profiler_mcp.security import PolicyBlockedError, TokenBlockedError
from profiler_mcp.storage import ProfilerError, ProfileRepository
from profiler_mcp.tools.builtin import register_builtin_tools
from profiler_mcp.tools.registry import ToolDispatchError, ToolRegistry

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "PROFILER_MCP_LOGLEVEL"


@dataclass(slots=True, frozen=True)
class Request:
    """Normalized incoming message."""

    request_id: str | int | None
    method: str
    params: dict[str, object]
    is_notification: bool


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for server startup configuration."""
    parser = argparse.ArgumentParser(prog="profiler-mcp", description="Run the MCP server")
    parser.add_argument("--project-root", required=False, default=".")
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--storage-path", required=False, default=None)
    parser.add_argument("--environment", required=False, default=None)
    parser.add_argument("--max-list-limit", type=int, required=False, default=None)
    parser.add_argument("--max-response-bytes", type=int, required=False, default=None)
    parser.add_argument(
        "--profiler-enabled", choices=("true", "false"), required=False, default=None
    )
    parser.add_argument("--no-audit", action="store_true", default=False)
    return parser


class StdioServer:
    """Single-threaded JSON-RPC server routing MCP methods to profiler tools."""

    def __init__(self, config: ServerConfig, temp_dir: Path | None = None) -> None:
        self._config = config
        self._limits = config.limits
        self._audit_logger: JsonlAuditLogger | None = None
        if config.audit_enabled:
            self._audit_logger = JsonlAuditLogger(config.data_dir)
        self._repository = ProfileRepository(
            project_root=config.project_root,
            profiler=config.profiler,
            temp_dir=temp_dir,
        )
        self._registry = ToolRegistry()
        register_builtin_tools(self._registry, repository=self._repository, limits=self._limits)
        self._initialized = False
        self._fallback_request_counter = 0

    @property
    def initialized(self) -> bool:
        """Return True once the client sent notifications/initialized."""
        return self._initialized

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Process JSON-line requests from stdin and write JSON-line responses."""
        for raw_line in in_stream:
            line = raw_line.strip()
            if not line:
                continue
            response = self.handle_json_line(line)
            if response is None:
                continue
            out_stream.write(f"{json.dumps(response, sort_keys=True)}\n")
            out_stream.flush()

    def handle_json_line(self, raw_line: str) -> dict[str, object] | None:
        """Handle a single JSON-line message."""
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            response = self.error_response(None, PARSE_ERROR, "Parse error")
            self.log_request(
                request_id=None,
                method="invalid_json",
                tool_name=None,
                arguments={"raw_line_length": len(raw_line)},
                response=response,
            )
            return response
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object] | None:
        """Validate and dispatch a parsed message; notifications return None."""
        parsed = self.parse_request(payload)
        if isinstance(parsed, dict):
            self.log_request(
                request_id=parsed.get("id"),
                method="invalid_request",
                tool_name=None,
                arguments={},
                response=parsed,
            )
            return parsed

        request = parsed
        if request.is_notification:
            self.handle_notification(request)
            return None

        tool_name: str | None = None
        arguments: dict[str, object] = {}
        try:
            if request.method == "initialize":
                result = self._initialize_result(request.params)
            elif request.method == "ping":
                result = {}
            elif request.method == "tools/list":
                result = {"tools": self._registry.describe()}
            elif request.method == "tools/call":
                tool_name, arguments = self._tool_call_params(request.params)
                text = self._registry.dispatch(name=tool_name, arguments=arguments)
                result = {"content": [{"type": "text", "text": text}], "isError": False}
            else:
                raise ToolDispatchError(
                    code=METHOD_NOT_FOUND, message=f"Method not found: {request.method}"
                )
        except ToolDispatchError as error:
            response = self.error_response(request.request_id, error.code, error.message)
        except TokenBlockedError as error:
            response = self.error_response(request.request_id, INVALID_PARAMS, error.reason)
        except PolicyBlockedError as error:
            response = self.error_response(request.request_id, INVALID_PARAMS, error.reason)
        except ProfilerError as error:
            response = self.error_response(request.request_id, APPLICATION_ERROR, str(error))
        except Exception as error:
            logger.exception("Unhandled error while handling %s", request.method)
            response = self.error_response(
                request.request_id, APPLICATION_ERROR, str(error) or type(error).__name__
            )
        else:
            response = self.enforce_response_size_limit(
                self.success_response(request.request_id, result)
            )

        self.log_request(
            request_id=request.request_id,
            method=request.method,
            tool_name=tool_name,
            arguments=arguments,
            response=response,
        )
        return response

    def handle_notification(self, request: Request) -> None:
        """Apply a notification; unknown notifications are ignored."""
        if request.method == "notifications/initialized":
            self._initialized = True
        logger.debug("Notification received: %s", request.method)

    def parse_request(self, payload: object) -> Request | dict[str, object]:
        """Validate a message and return a normalized Request or an error response."""
        if not isinstance(payload, dict):
            return self.error_response(None, INVALID_REQUEST, "Request must be an object.")

        is_notification = "id" not in payload
        request_id = payload.get("id")
        if isinstance(request_id, bool) or not isinstance(request_id, (str, int, type(None))):
            return self.error_response(
                None, INVALID_REQUEST, "Request id must be a string, integer or null."
            )

        version = payload.get("jsonrpc", JSONRPC_VERSION)
        if version != JSONRPC_VERSION:
            return self.error_response(
                request_id, INVALID_REQUEST, f"Unsupported jsonrpc version: {version}"
            )

        method = payload.get("method")
        params = payload.get("params", {})
        if params is None:
            params = {}
        if not isinstance(method, str) or not method:
            return self.error_response(
                request_id, INVALID_REQUEST, "Request method must be a non-empty string."
            )
        if not isinstance(params, dict):
            return self.error_response(
                request_id, INVALID_PARAMS, "Request params must be an object."
            )

        return Request(
            request_id=request_id,
            method=method,
            params=params,
            is_notification=is_notification,
        )

    def next_request_id(self) -> str:
        """Generate deterministic audit IDs for messages without a usable id."""
        self._fallback_request_counter += 1
        return f"req-{self._fallback_request_counter:06d}"

    @staticmethod
    def success_response(
        request_id: str | int | None, result: dict[str, object]
    ) -> dict[str, object]:
        """Build a JSON-RPC result envelope."""
        return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}

    @staticmethod
    def error_response(request_id: object, code: int, message: str) -> dict[str, object]:
        """Build a JSON-RPC error envelope."""
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": request_id,
            "error": {"code": code, "message": message},
        }

    def enforce_response_size_limit(self, response: dict[str, object]) -> dict[str, object]:
        """Replace responses that exceed max_response_bytes with an error."""
        response_bytes = len(json.dumps(response, sort_keys=True).encode("utf-8"))
        if response_bytes <= self._limits.max_response_bytes:
            return response
        return self.error_response(
            response.get("id"),
            APPLICATION_ERROR,
            "Response exceeds max_response_bytes limit. "
            "Request a single collector or raise limits.max_response_bytes.",
        )

    def log_request(
        self,
        request_id: object,
        method: str,
        tool_name: str | None,
        arguments: dict[str, object],
        response: dict[str, object],
    ) -> None:
        """Record one handled request in the audit trail."""
        if self._audit_logger is None:
            return
        audit_id = (
            str(request_id)
            if isinstance(request_id, (str, int)) and request_id != ""
            else self.next_request_id()
        )
        self._audit_logger.append(
            AuditEvent.from_response(
                request_id=audit_id,
                method=method,
                tool=tool_name,
                arguments=arguments,
                response=response,
            )
        )

    def _initialize_result(self, params: dict[str, object]) -> dict[str, object]:
        client_info = params.get("clientInfo")
        if isinstance(client_info, dict):
            logger.info(
                "Client connected: %s %s", client_info.get("name"), client_info.get("version")
            )
        return {
            "protocolVersion": MCP_PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {
                "name": self._config.server.name,
                "version": self._config.server.version,
            },
        }

    @staticmethod
    def _tool_call_params(params: dict[str, object]) -> tuple[str, dict[str, object]]:
        name = params.get("name")
        arguments = params.get("arguments", {})
        if arguments is None:
            arguments = {}
        if not isinstance(name, str) or not name:
            raise ToolDispatchError(
                code=INVALID_PARAMS, message="tools/call params.name must be a non-empty string."
            )
        if not isinstance(arguments, dict):
            raise ToolDispatchError(
                code=INVALID_PARAMS, message="tools/call params.arguments must be an object."
            )
        return name, arguments


def create_server(
    project_root: str = ".",
    cli_overrides: CliOverrides | None = None,
    temp_dir: Path | None = None,
) -> StdioServer:
    """Create server instance with effective merged config."""
    config = load_effective_config(Path(project_root), overrides=cli_overrides)
    return StdioServer(config=config, temp_dir=temp_dir)


def install_signal_handlers() -> None:
    """Exit cleanly with status 0 on SIGINT and SIGTERM."""

    def handle(signum: int, _frame: FrameType | None) -> None:
        logger.info("%s received, shutting down...", signal.Signals(signum).name)
        raise SystemExit(0)

    signal.signal(signal.SIGINT, handle)
    signal.signal(signal.SIGTERM, handle)


def configure_logging() -> None:
    """Send diagnostics to stderr; stdout carries the protocol."""
    logging.basicConfig(
        level=os.environ.get(LOG_LEVEL_ENV, "WARNING").upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the profiler MCP server process."""
    configure_logging()
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    profiler_enabled: bool | None = None
    if args.profiler_enabled == "true":
        profiler_enabled = True
    if args.profiler_enabled == "false":
        profiler_enabled = False
    overrides = CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        storage_path=Path(args.storage_path) if args.storage_path is not None else None,
        environment=args.environment,
        profiler_enabled=profiler_enabled,
        max_list_limit=args.max_list_limit,
        max_response_bytes=args.max_response_bytes,
        audit_enabled=False if args.no_audit else None,
    )
    try:
        server = create_server(project_root=args.project_root, cli_overrides=overrides)
    except (OSError, ValueError) as error:
        logger.error("Error running MCP Server: %s", error)
        return 1
    install_signal_handlers()
    logger.info("Serving profiler tools on stdio")
    server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
