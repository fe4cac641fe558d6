from __future__ import annotations

from pathlib import Path

from profiler_fixtures import ProfilerStorageWriter

from profiler_mcp.config import ProfilerConfig
from profiler_mcp.storage import (
    candidate_locations,
    discover_locations,
    listing_locations,
    locate_token,
)


def _profiler(storage_path: Path | None = None, environment: str = "dev") -> ProfilerConfig:
    return ProfilerConfig(
        enabled=True,
        storage_path=storage_path,
        environment=environment,
        apps_dir="apps",
    )


def _make_dirs(project_root: Path, *relative: str) -> None:
    for rel in relative:
        (project_root / rel).mkdir(parents=True)


def test_candidates_follow_priority_order(project_root: Path, temp_dir: Path) -> None:
    _make_dirs(
        project_root,
        "var/cache/dev",
        "var/cache/api",
        "var/cache/admin",
        "apps/shop",
    )
    configured = project_root / "custom"

    candidates = candidate_locations(project_root, _profiler(configured), temp_dir=temp_dir)

    assert [(item.layout, item.app) for item in candidates] == [
        ("configured", None),
        ("single_app", None),
        ("multi_app", "admin"),
        ("multi_app", "api"),
        ("apps_dir", "shop"),
        ("temp", None),
    ]
    assert candidates[-1].path == temp_dir / "symfony" / "profiler"


def test_discovery_keeps_existing_single_and_multi_app_locations(
    project_root: Path, temp_dir: Path
) -> None:
    _make_dirs(
        project_root,
        "var/cache/dev/profiler",
        "var/cache/admin/dev/profiler",
        "var/cache/api/prod/profiler",
        "apps/shop/var/cache/dev/profiler",
    )

    locations = discover_locations(project_root, _profiler(), temp_dir=temp_dir)

    assert [(item.layout, item.app) for item in locations] == [
        ("single_app", None),
        ("multi_app", "admin"),
        ("apps_dir", "shop"),
    ]
    assert all(item.path.is_absolute() for item in locations)


def test_environment_selects_cache_subdirectory(project_root: Path, temp_dir: Path) -> None:
    _make_dirs(project_root, "var/cache/dev/profiler", "var/cache/test/profiler")

    locations = discover_locations(project_root, _profiler(environment="test"), temp_dir=temp_dir)

    assert [item.path for item in locations] == [
        (project_root / "var" / "cache" / "test" / "profiler").resolve()
    ]


def test_configured_path_is_deduplicated_against_layouts(
    project_root: Path, temp_dir: Path
) -> None:
    _make_dirs(project_root, "var/cache/dev/profiler")
    configured = project_root / "var" / "cache" / "dev" / "profiler"

    locations = discover_locations(project_root, _profiler(configured), temp_dir=temp_dir)

    assert [item.layout for item in locations] == ["configured"]


def test_temp_location_is_listed_only_without_project_storage(
    project_root: Path, temp_dir: Path
) -> None:
    (temp_dir / "symfony" / "profiler").mkdir(parents=True)

    only_temp = discover_locations(project_root, _profiler(), temp_dir=temp_dir)
    assert [item.layout for item in listing_locations(only_temp)] == ["temp"]

    _make_dirs(project_root, "var/cache/dev/profiler")
    with_project = discover_locations(project_root, _profiler(), temp_dir=temp_dir)
    assert [item.layout for item in with_project] == ["single_app", "temp"]
    assert [item.layout for item in listing_locations(with_project)] == ["single_app"]


def test_locate_token_searches_every_location(project_root: Path, temp_dir: Path) -> None:
    single = ProfilerStorageWriter(project_root / "var" / "cache" / "dev" / "profiler")
    admin = ProfilerStorageWriter(project_root / "var" / "cache" / "admin" / "dev" / "profiler")
    single.add_profile("aaaaaa")
    admin.add_profile("bbbbbb")

    locations = discover_locations(project_root, _profiler(), temp_dir=temp_dir)

    found = locate_token(locations, "bbbbbb")
    assert found is not None
    assert found.layout == "multi_app"
    assert found.app == "admin"
    assert locate_token(locations, "cccccc") is None
