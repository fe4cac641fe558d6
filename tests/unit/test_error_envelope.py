from __future__ import annotations

from pathlib import Path

from profiler_mcp.server import create_server


def _server(project_root: Path, temp_dir: Path):
    return create_server(project_root=str(project_root), temp_dir=temp_dir)


def test_malformed_json_returns_parse_error(project_root: Path, temp_dir: Path) -> None:
    server = _server(project_root, temp_dir)

    response = server.handle_json_line("{not-json")

    assert response == {
        "jsonrpc": "2.0",
        "id": None,
        "error": {"code": -32700, "message": "Parse error"},
    }


def test_unknown_method_returns_method_not_found(project_root: Path, temp_dir: Path) -> None:
    server = _server(project_root, temp_dir)

    response = server.handle_payload(
        {"jsonrpc": "2.0", "id": "abc-123", "method": "resources/list", "params": {}}
    )

    assert response == {
        "jsonrpc": "2.0",
        "id": "abc-123",
        "error": {"code": -32601, "message": "Method not found: resources/list"},
    }


def test_unknown_tool_returns_method_not_found(project_root: Path, temp_dir: Path) -> None:
    server = _server(project_root, temp_dir)

    response = server.handle_payload(
        {"id": 4, "method": "tools/call", "params": {"name": "profiler_nope", "arguments": {}}}
    )

    assert response["id"] == 4
    assert response["error"] == {"code": -32601, "message": "Unknown tool: profiler_nope"}


def test_invalid_tools_call_arguments_return_invalid_params(
    project_root: Path, temp_dir: Path
) -> None:
    server = _server(project_root, temp_dir)

    response = server.handle_payload(
        {"id": 7, "method": "tools/call", "params": {"name": "profiler_list", "arguments": []}}
    )

    assert response["id"] == 7
    assert response["error"] == {
        "code": -32602,
        "message": "tools/call params.arguments must be an object.",
    }


def test_non_object_request_is_invalid(project_root: Path, temp_dir: Path) -> None:
    server = _server(project_root, temp_dir)

    response = server.handle_payload(["initialize"])

    assert response["id"] is None
    assert response["error"]["code"] == -32600


def test_unsupported_jsonrpc_version_is_invalid(project_root: Path, temp_dir: Path) -> None:
    server = _server(project_root, temp_dir)

    response = server.handle_payload({"jsonrpc": "1.0", "id": 1, "method": "ping"})

    assert response["id"] == 1
    assert response["error"]["code"] == -32600


def test_notifications_get_no_response(project_root: Path, temp_dir: Path) -> None:
    server = _server(project_root, temp_dir)

    assert server.initialized is False
    assert server.handle_payload({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
    assert server.handle_payload({"jsonrpc": "2.0", "method": "notifications/unknown"}) is None
    assert server.initialized is True


def test_ping_returns_empty_result(project_root: Path, temp_dir: Path) -> None:
    server = _server(project_root, temp_dir)

    response = server.handle_payload({"jsonrpc": "2.0", "id": "p", "method": "ping"})

    assert response == {"jsonrpc": "2.0", "id": "p", "result": {}}
