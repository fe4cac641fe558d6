"""Profiler storage discovery across single-app and multi-app layouts."""

from __future__ import annotations

import tempfile
from pathlib import Path

from profiler_mcp.config import ProfilerConfig
from profiler_mcp.security import resolve_token_path
from profiler_mcp.storage.models import StorageLocation

LAYOUT_CONFIGURED = "configured"
LAYOUT_SINGLE_APP = "single_app"
LAYOUT_MULTI_APP = "multi_app"
LAYOUT_APPS_DIR = "apps_dir"
LAYOUT_TEMP = "temp"

PROJECT_LAYOUTS = (LAYOUT_CONFIGURED, LAYOUT_SINGLE_APP, LAYOUT_MULTI_APP, LAYOUT_APPS_DIR)


def candidate_locations(
    project_root: Path,
    profiler: ProfilerConfig,
    temp_dir: Path | None = None,
) -> list[StorageLocation]:
    """Return every candidate storage location in priority order.

    Candidates are not checked for existence.
    """
    root = project_root.resolve()
    env = profiler.environment
    candidates: list[StorageLocation] = []

    if profiler.storage_path is not None:
        candidates.append(StorageLocation(path=profiler.storage_path, layout=LAYOUT_CONFIGURED))

    cache_root = root / "var" / "cache"
    candidates.append(
        StorageLocation(path=cache_root / env / "profiler", layout=LAYOUT_SINGLE_APP)
    )
    for app_dir in _sorted_subdirs(cache_root):
        if app_dir.name == env:
            continue
        candidates.append(
            StorageLocation(
                path=app_dir / env / "profiler",
                layout=LAYOUT_MULTI_APP,
                app=app_dir.name,
            )
        )

    for app_dir in _sorted_subdirs(root / profiler.apps_dir):
        candidates.append(
            StorageLocation(
                path=app_dir / "var" / "cache" / env / "profiler",
                layout=LAYOUT_APPS_DIR,
                app=app_dir.name,
            )
        )

    base_temp = temp_dir if temp_dir is not None else Path(tempfile.gettempdir())
    candidates.append(
        StorageLocation(path=base_temp / "symfony" / "profiler", layout=LAYOUT_TEMP)
    )
    return candidates


def discover_locations(
    project_root: Path,
    profiler: ProfilerConfig,
    temp_dir: Path | None = None,
) -> list[StorageLocation]:
    """Return existing, de-duplicated storage locations in priority order."""
    seen: set[Path] = set()
    found: list[StorageLocation] = []
    for candidate in candidate_locations(project_root, profiler, temp_dir=temp_dir):
        if not candidate.path.is_dir():
            continue
        resolved = candidate.path.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        found.append(
            StorageLocation(path=resolved, layout=candidate.layout, app=candidate.app)
        )
    return found


def listing_locations(locations: list[StorageLocation]) -> list[StorageLocation]:
    """Pick the locations whose indexes feed profile listings.

    Project-scoped locations win; the shared temp location is only used
    when the project has no storage of its own.
    """
    project_scoped = [item for item in locations if item.layout in PROJECT_LAYOUTS]
    if project_scoped:
        return project_scoped
    return [item for item in locations if item.layout == LAYOUT_TEMP]


def locate_token(locations: list[StorageLocation], token: str) -> StorageLocation | None:
    """Return the first location whose sharded token file exists."""
    for location in locations:
        if resolve_token_path(location.path, token).is_file():
            return location
    return None


def _sorted_subdirs(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(
        (child for child in directory.iterdir() if child.is_dir()),
        key=lambda child: child.name,
    )
