from __future__ import annotations

from pathlib import Path

import pytest
from profiler_fixtures import ProfilerStorageWriter, single_app_storage


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    return tmp_path / "tmp"


@pytest.fixture
def storage(project_root: Path) -> ProfilerStorageWriter:
    return single_app_storage(project_root)
