"""Limits policy for profiler tool responses."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class SecurityLimits:
    """Runtime limits for tool arguments and responses."""

    default_list_limit: int = 20
    max_list_limit: int = 100
    max_response_bytes: int = 1024 * 1024
    max_dump_depth: int = 12


@dataclass(slots=True, frozen=True)
class PolicyBlockedError(Exception):
    """Raised when limits policy blocks an operation."""

    reason: str
    hint: str


def enforce_list_limit(limit: int, limits: SecurityLimits) -> int:
    """Return limit when it fits the configured bounds, else raise."""
    if limit < 1:
        raise PolicyBlockedError(
            reason="Requested limit must be a positive integer.",
            hint="Use a limit of at least 1.",
        )
    if limit > limits.max_list_limit:
        raise PolicyBlockedError(
            reason="Requested limit exceeds max_list_limit.",
            hint=f"Use a limit of at most {limits.max_list_limit}.",
        )
    return limit
