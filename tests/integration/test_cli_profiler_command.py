from __future__ import annotations

import io
from pathlib import Path

from profiler_fixtures import BASE_TIME, ProfilerStorageWriter, request_collector, time_collector

from profiler_mcp.cli import EXIT_FAILURE, EXIT_INVALID, EXIT_SUCCESS, main


def _run(project_root: Path, *argv: str, confirm=None) -> tuple[int, str]:
    out = io.StringIO()
    code = main(["--project-root", str(project_root), *argv], out=out, confirm=confirm)
    return code, out.getvalue()


def _seed(storage: ProfilerStorageWriter) -> None:
    storage.add_profile(
        "aaa111",
        {"request": request_collector(), "time": time_collector()},
        time=BASE_TIME,
        url="http://localhost/home",
    )
    storage.add_profile("bbb222", time=BASE_TIME + 60, method="POST", status_code=302)


def test_list_prints_table_of_recent_profiles(
    project_root: Path, storage: ProfilerStorageWriter
) -> None:
    _seed(storage)

    code, output = _run(project_root, "list", "--limit", "5")

    assert code == EXIT_SUCCESS
    assert "Listing the 5 most recent profiles" in output
    lines = [line for line in output.splitlines() if line.startswith("|")]
    assert lines[0].split("|")[1].strip() == "Token"
    assert [line.split("|")[1].strip() for line in lines[1:]] == ["bbb222", "aaa111"]
    assert "302" in lines[1]


def test_list_warns_when_storage_is_empty(
    project_root: Path, storage: ProfilerStorageWriter
) -> None:
    code, output = _run(project_root, "list")

    assert code == EXIT_SUCCESS
    assert "[WARNING] No profiles found" in output


def test_list_rejects_non_positive_limit(project_root: Path) -> None:
    code, output = _run(project_root, "list", "--limit", "0")

    assert code == EXIT_INVALID
    assert "[ERROR] The --limit option must be a positive integer." in output


def test_show_lists_available_collectors(
    project_root: Path, storage: ProfilerStorageWriter
) -> None:
    _seed(storage)

    code, output = _run(project_root, "show", "aaa111")

    assert code == EXIT_SUCCESS
    assert 'Profile for "aaa111"' in output
    assert "http://localhost/home" in output
    assert "Available Collectors" in output
    assert "Use --collector=request to view details" in output
    assert "Use --collector=time to view details" in output


def test_show_renders_one_collector(project_root: Path, storage: ProfilerStorageWriter) -> None:
    _seed(storage)

    code, output = _run(project_root, "show", "aaa111", "--collector", "request")

    assert code == EXIT_SUCCESS
    assert "Collector: request" in output
    lines = output.splitlines()
    assert "method: GET" in lines
    assert "status_code: 200" in lines
    assert "request_headers:" in lines
    assert "  host:" in lines
    assert "    0: localhost" in lines


def test_show_reports_missing_collector(
    project_root: Path, storage: ProfilerStorageWriter
) -> None:
    _seed(storage)

    code, output = _run(project_root, "show", "aaa111", "-c", "doctrine")

    assert code == EXIT_FAILURE
    assert '[ERROR] No collector named "doctrine" found' in output


def test_show_reports_unknown_token(project_root: Path, storage: ProfilerStorageWriter) -> None:
    _seed(storage)

    code, output = _run(project_root, "show", "zzz999")

    assert code == EXIT_FAILURE
    assert "[ERROR] No profile found for token: zzz999" in output


def test_purge_can_be_cancelled(project_root: Path, storage: ProfilerStorageWriter) -> None:
    _seed(storage)
    questions: list[str] = []

    def decline(question: str) -> bool:
        questions.append(question)
        return False

    code, output = _run(project_root, "purge", confirm=decline)

    assert code == EXIT_SUCCESS
    assert questions == ["Are you sure you want to purge all profiler data?"]
    assert "[NOTE] Operation cancelled" in output
    assert (storage.root / "index.csv").exists()


def test_purge_with_yes_removes_profiles(
    project_root: Path, storage: ProfilerStorageWriter
) -> None:
    _seed(storage)

    code, output = _run(project_root, "purge", "--yes")

    assert code == EXIT_SUCCESS
    assert "[OK] All profiler data has been purged" in output
    assert list(storage.root.iterdir()) == []
    assert "[WARNING] No profiles found" in _run(project_root, "list")[1]
