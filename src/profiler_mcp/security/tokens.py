"""Token validation and storage-scoped path resolution."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

TOKEN_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class TokenBlockedError(Exception):
    """Raised when a requested profiler token violates sandbox policy."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def validate_token(candidate: object) -> str:
    """Return the token when it is a well-formed profiler token."""
    if not isinstance(candidate, str) or not candidate:
        raise TokenBlockedError(
            reason="Token is empty.",
            hint="Provide a profiler token such as '8b7fa2'.",
        )
    if not TOKEN_PATTERN.fullmatch(candidate):
        raise TokenBlockedError(
            reason="Token contains unsupported characters.",
            hint="Tokens are 1-64 characters of letters, digits, '-' or '_'.",
        )
    return candidate


def token_shards(token: str) -> tuple[str, str]:
    """Return the two directory levels the profiler uses for a token.

    Mirrors PHP ``substr($token, -2, 2)`` and ``substr($token, -4, 2)``,
    which clamp a negative offset to the start of short strings.
    """
    first = token[-2:]
    second = token[max(len(token) - 4, 0) :][:2]
    return first, second


def resolve_token_path(storage_dir: Path, token: str) -> Path:
    """Resolve the sharded profile file for a token inside storage_dir."""
    root = storage_dir.resolve()
    validated = validate_token(token)
    first, second = token_shards(validated)
    resolved = (root / first / second / validated).resolve(strict=False)
    if not resolved.is_relative_to(root):
        raise TokenBlockedError(
            reason="Resolved token path escapes the profiler storage directory.",
            hint="Use a token listed by profiler_list.",
        )
    return resolved
