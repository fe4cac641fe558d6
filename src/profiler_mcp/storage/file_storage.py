"""Read-only access to one file-based profiler storage directory."""

from __future__ import annotations

import csv
import shutil
from pathlib import Path

from profiler_mcp.security import resolve_token_path
from profiler_mcp.storage.models import Profile, ProfileSummary, StorageLocation
from profiler_mcp.storage.serialization import as_sequence, decode_profile_payload

INDEX_FILE_NAME = "index.csv"


class FileProfilerStorage:
    """Reads the index and sharded profile files of a storage directory."""

    def __init__(self, location: StorageLocation) -> None:
        self._location = location
        self._root = location.path.resolve()
        self._index_path = self._root / INDEX_FILE_NAME

    @property
    def location(self) -> StorageLocation:
        return self._location

    @property
    def root(self) -> Path:
        return self._root

    def find(
        self,
        ip: str | None = None,
        url: str | None = None,
        limit: int = 20,
        method: str | None = None,
        start: int | None = None,
        end: int | None = None,
        status_code: int | None = None,
    ) -> list[ProfileSummary]:
        """Return index rows matching the filters, newest first."""
        if limit < 1 or not self._index_path.is_file():
            return []
        results: dict[str, ProfileSummary] = {}
        for row in reversed(self._read_index_rows()):
            summary = self._summary_from_row(row)
            if summary is None or summary.token in results:
                continue
            if ip and ip not in summary.ip:
                continue
            if url and url not in summary.url:
                continue
            if method and method not in summary.method:
                continue
            if status_code is not None and summary.status_code != status_code:
                continue
            if start is not None and summary.time < start:
                continue
            if end is not None and summary.time > end:
                continue
            results[summary.token] = summary
            if len(results) >= limit:
                break
        return list(results.values())

    def has(self, token: str) -> bool:
        return resolve_token_path(self._root, token).is_file()

    def read(self, token: str) -> Profile | None:
        """Load and decode one profile, or None when it is not stored here."""
        path = resolve_token_path(self._root, token)
        if not path.is_file():
            return None
        payload = decode_profile_payload(path.read_bytes())
        return self._profile_from_payload(token, payload)

    def purge(self) -> int:
        """Delete everything under the storage root; return entries removed."""
        if not self._root.is_dir():
            return 0
        removed = 0
        for child in sorted(self._root.iterdir()):
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
            removed += 1
        return removed

    def _read_index_rows(self) -> list[list[str]]:
        with self._index_path.open("r", encoding="utf-8", errors="replace", newline="") as handle:
            return [row for row in csv.reader(handle) if row]

    def _summary_from_row(self, row: list[str]) -> ProfileSummary | None:
        if len(row) < 5 or not row[0]:
            return None
        time_value = _as_optional_int(row[4])
        if time_value is None:
            return None
        return ProfileSummary(
            token=row[0],
            ip=row[1],
            method=row[2],
            url=row[3],
            time=time_value,
            parent=(row[5] or None) if len(row) > 5 else None,
            status_code=_as_optional_int(row[6]) if len(row) > 6 else None,
            virtual_type=(row[7] or None) if len(row) > 7 else None,
            app=self._location.app,
        )

    def _profile_from_payload(self, token: str, payload: dict[str, object]) -> Profile:
        collectors_value = payload.get("data")
        collectors: dict[str, object] = {}
        if isinstance(collectors_value, dict):
            collectors = {str(name): value for name, value in collectors_value.items()}
        parent = payload.get("parent")
        virtual_type = payload.get("virtualType", payload.get("virtual_type"))
        return Profile(
            token=str(payload.get("token") or token),
            ip=_as_str(payload.get("ip")),
            method=_as_str(payload.get("method")),
            url=_as_str(payload.get("url")),
            time=_as_optional_int(payload.get("time")) or 0,
            status_code=_as_optional_int(payload.get("status_code")),
            parent=parent if isinstance(parent, str) and parent else None,
            children=tuple(
                str(child) for child in as_sequence(payload.get("children")) if child
            ),
            virtual_type=virtual_type if isinstance(virtual_type, str) else None,
            collectors=collectors,
            location=self._location,
        )


def _as_str(value: object) -> str:
    if value is None:
        return ""
    return str(value)


def _as_optional_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None
