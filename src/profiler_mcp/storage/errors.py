"""Exceptions raised while reading profiler storage."""

from __future__ import annotations


class ProfilerError(Exception):
    """Base class for profiler storage failures surfaced to clients."""


class ProfilerUnavailableError(ProfilerError):
    """Raised when profiling is disabled or no storage could be located."""


class ProfileNotFoundError(ProfilerError):
    """Raised when no storage location holds the requested token."""

    def __init__(self, token: str) -> None:
        super().__init__(f"No profile found for token: {token}")
        self.token = token


class CollectorNotFoundError(ProfilerError):
    """Raised when a profile has no collector with the requested name."""

    def __init__(self, token: str, collector_name: str) -> None:
        super().__init__(f"Collector '{collector_name}' not found for token: {token}")
        self.token = token
        self.collector_name = collector_name


class ProfileDecodeError(ProfilerError):
    """Raised when a stored profile payload cannot be decoded."""
