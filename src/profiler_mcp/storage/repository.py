"""Profile lookup across every discovered storage location."""

from __future__ import annotations

from pathlib import Path

from profiler_mcp.config import ProfilerConfig
from profiler_mcp.security import validate_token
from profiler_mcp.storage.discovery import discover_locations, listing_locations, locate_token
from profiler_mcp.storage.errors import ProfileNotFoundError, ProfilerUnavailableError
from profiler_mcp.storage.file_storage import FileProfilerStorage
from profiler_mcp.storage.models import Profile, ProfileSummary, StorageLocation

UNAVAILABLE_MESSAGE = "Profiler service not available."


class ProfileRepository:
    """Resolves tokens to storage locations and reads profiles from them.

    Locations are discovered on every call so profiles written by the
    application after startup, or newly created cache directories, are
    picked up without restarting the server.
    """

    def __init__(
        self,
        project_root: Path,
        profiler: ProfilerConfig,
        temp_dir: Path | None = None,
    ) -> None:
        self._project_root = project_root.resolve()
        self._profiler = profiler
        self._temp_dir = temp_dir

    def locations(self) -> list[StorageLocation]:
        """Return existing storage locations in priority order."""
        self._require_enabled()
        return discover_locations(self._project_root, self._profiler, temp_dir=self._temp_dir)

    def find(
        self,
        limit: int,
        ip: str | None = None,
        url: str | None = None,
        method: str | None = None,
        status_code: int | None = None,
        start: int | None = None,
        end: int | None = None,
    ) -> list[ProfileSummary]:
        """Return the newest matching summaries across listing locations."""
        locations = listing_locations(self._require_locations())
        merged: list[ProfileSummary] = []
        seen: set[str] = set()
        for location in locations:
            storage = FileProfilerStorage(location)
            for summary in storage.find(
                ip=ip,
                url=url,
                limit=limit,
                method=method,
                start=start,
                end=end,
                status_code=status_code,
            ):
                if summary.token in seen:
                    continue
                seen.add(summary.token)
                merged.append(summary)
        merged.sort(key=lambda item: item.time, reverse=True)
        return merged[:limit]

    def load(self, token: str) -> Profile:
        """Load a profile by token from the first location that holds it."""
        validated = validate_token(token)
        location = locate_token(self._require_locations(), validated)
        if location is None:
            raise ProfileNotFoundError(validated)
        profile = FileProfilerStorage(location).read(validated)
        if profile is None:
            raise ProfileNotFoundError(validated)
        return profile

    def purge(self) -> list[StorageLocation]:
        """Purge every listing location and return the purged locations."""
        purged: list[StorageLocation] = []
        for location in listing_locations(self._require_locations()):
            FileProfilerStorage(location).purge()
            purged.append(location)
        return purged

    def _require_enabled(self) -> None:
        if not self._profiler.enabled:
            raise ProfilerUnavailableError(UNAVAILABLE_MESSAGE)

    def _require_locations(self) -> list[StorageLocation]:
        locations = self.locations()
        if not locations:
            raise ProfilerUnavailableError(
                f"{UNAVAILABLE_MESSAGE} No profiler storage directory was found."
            )
        return locations
