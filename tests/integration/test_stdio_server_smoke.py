from __future__ import annotations

import io
import json
from pathlib import Path

from profiler_mcp.server import create_server

EXPECTED_TOOLS = [
    "profiler_list",
    "profiler_get_by_token",
    "profiler_get_all_collector_by_token",
    "profiler_get_one_collector_by_token",
]


def test_stdio_session_round_trip(project_root: Path, temp_dir: Path) -> None:
    server = create_server(project_root=str(project_root), temp_dir=temp_dir)
    requests = [
        {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "initialize",
            "params": {
                "protocolVersion": "2024-11-05",
                "clientInfo": {"name": "smoke", "version": "0.1"},
            },
        },
        {"jsonrpc": "2.0", "method": "notifications/initialized"},
        {"jsonrpc": "2.0", "id": 2, "method": "tools/list"},
        {"jsonrpc": "2.0", "id": 3, "method": "ping"},
    ]
    in_stream = io.StringIO("\n".join(json.dumps(item) for item in requests) + "\n\n")
    out_stream = io.StringIO()

    server.serve(in_stream=in_stream, out_stream=out_stream)

    responses = [json.loads(line) for line in out_stream.getvalue().splitlines()]
    assert [response["id"] for response in responses] == [1, 2, 3]
    assert server.initialized is True

    initialize = responses[0]["result"]
    assert initialize == {
        "protocolVersion": "2024-11-05",
        "capabilities": {"tools": {"listChanged": False}},
        "serverInfo": {"name": "Symfony MCP Profiler Bundle", "version": "1.0.0"},
    }

    tools = responses[1]["result"]["tools"]
    assert [tool["name"] for tool in tools] == EXPECTED_TOOLS
    for tool in tools:
        assert set(tool) == {"name", "description", "inputSchema"}
        assert tool["inputSchema"]["type"] == "object"
    assert tools[1]["inputSchema"]["required"] == ["token"]
    assert tools[3]["inputSchema"]["required"] == ["token", "collector_name"]

    assert responses[2]["result"] == {}


def test_each_response_is_one_line(project_root: Path, temp_dir: Path) -> None:
    server = create_server(project_root=str(project_root), temp_dir=temp_dir)
    in_stream = io.StringIO('{"jsonrpc": "2.0", "id": 9, "method": "tools/list"}\nnot json\n')
    out_stream = io.StringIO()

    server.serve(in_stream=in_stream, out_stream=out_stream)

    lines = out_stream.getvalue().splitlines()
    assert len(lines) == 2
    assert json.loads(lines[1])["error"] == {"code": -32700, "message": "Parse error"}
