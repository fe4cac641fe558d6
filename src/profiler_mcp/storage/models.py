"""Typed models for profiler records."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True, frozen=True)
class StorageLocation:
    """A profiler storage directory and the layout that produced it."""

    path: Path
    layout: str
    app: str | None = None


@dataclass(slots=True, frozen=True)
class ProfileSummary:
    """One row of a storage index."""

    token: str
    ip: str
    method: str
    url: str
    time: int
    parent: str | None
    status_code: int | None
    virtual_type: str | None = None
    app: str | None = None


@dataclass(slots=True)
class Profile:
    """A fully loaded profile with its raw collectors."""

    token: str
    ip: str
    method: str
    url: str
    time: int
    status_code: int | None
    parent: str | None = None
    children: tuple[str, ...] = ()
    virtual_type: str | None = None
    collectors: dict[str, object] = field(default_factory=dict)
    location: StorageLocation | None = None

    def collector_names(self) -> list[str]:
        return list(self.collectors.keys())

    def has_collector(self, name: str) -> bool:
        return name in self.collectors
