"""Profiler storage discovery and decoding package."""

from .discovery import candidate_locations, discover_locations, listing_locations, locate_token
from .errors import (
    CollectorNotFoundError,
    ProfileDecodeError,
    ProfileNotFoundError,
    ProfilerError,
    ProfilerUnavailableError,
)
from .file_storage import FileProfilerStorage
from .models import Profile, ProfileSummary, StorageLocation
from .normalize import collector_data, normalize_value, resolve_dumper_data
from .repository import ProfileRepository
from .serialization import decode_profile_payload

__all__ = [
    "CollectorNotFoundError",
    "FileProfilerStorage",
    "Profile",
    "ProfileDecodeError",
    "ProfileNotFoundError",
    "ProfileRepository",
    "ProfileSummary",
    "ProfilerError",
    "ProfilerUnavailableError",
    "StorageLocation",
    "candidate_locations",
    "collector_data",
    "decode_profile_payload",
    "discover_locations",
    "listing_locations",
    "locate_token",
    "normalize_value",
    "resolve_dumper_data",
]
