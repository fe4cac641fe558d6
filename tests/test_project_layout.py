from __future__ import annotations

import tomllib
from pathlib import Path


def test_required_package_paths_exist() -> None:
    root = Path(__file__).resolve().parents[1]
    required = [
        "src/profiler_mcp/server.py",
        "src/profiler_mcp/cli.py",
        "src/profiler_mcp/config.py",
        "src/profiler_mcp/tools/__init__.py",
        "src/profiler_mcp/storage/__init__.py",
        "src/profiler_mcp/security/__init__.py",
        "src/profiler_mcp/logging/__init__.py",
    ]
    for rel in required:
        assert (root / rel).exists(), rel


def test_package_metadata_declares_runtime_dependency() -> None:
    root = Path(__file__).resolve().parents[1]
    with (root / "pyproject.toml").open("rb") as handle:
        project = tomllib.load(handle)["project"]

    assert project["name"] == "profiler-mcp"
    assert "readme" not in project
    assert any(dep.startswith("phpserialize") for dep in project["dependencies"])
