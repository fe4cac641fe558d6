"""Decoding of stored profile payloads."""

from __future__ import annotations

import gzip
import json
import zlib

import phpserialize

from profiler_mcp.storage.errors import ProfileDecodeError

GZIP_MAGIC = b"\x1f\x8b"


def decode_profile_payload(raw: bytes) -> dict[str, object]:
    """Decode a profile file written by the profiler's file storage.

    Files may be gzip-compressed. The body is either PHP ``serialize()``
    output or, for non-PHP writers, a JSON object using the same keys.
    """
    if raw.startswith(GZIP_MAGIC):
        try:
            raw = gzip.decompress(raw)
        except (OSError, EOFError, zlib.error) as error:
            raise ProfileDecodeError(f"Corrupt compressed profile: {error}") from error

    body = raw.strip()
    if not body:
        raise ProfileDecodeError("Profile payload is empty.")

    if body.startswith(b"{"):
        try:
            payload = json.loads(body.decode("utf-8", errors="replace"))
        except json.JSONDecodeError as error:
            raise ProfileDecodeError(f"Invalid JSON profile: {error.msg}") from error
    else:
        try:
            payload = phpserialize.loads(
                body,
                decode_strings=True,
                errors="replace",
                object_hook=phpserialize.phpobject,
            )
        except ValueError as error:
            raise ProfileDecodeError(f"Invalid serialized profile: {error}") from error

    if not isinstance(payload, dict):
        raise ProfileDecodeError("Profile payload must be a mapping.")
    return payload


def as_sequence(value: object) -> list[object]:
    """Return the values of a PHP list, which decodes as an int-keyed dict."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value[key] for key in sorted(value, key=_sort_key)]
    return [value]


def _sort_key(key: object) -> tuple[int, int, str]:
    if isinstance(key, int):
        return (0, key, "")
    return (1, 0, str(key))
