"""Append-only JSONL audit trail of handled JSON-RPC requests."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path

AUDIT_FILE_NAME = "audit.jsonl"

# Profiler identifiers recorded as-is; other strings only by length.
VERBATIM_STRING_ARGUMENTS = frozenset({"token", "collector_name", "method"})


@dataclass(slots=True, frozen=True)
class AuditEvent:
    """One handled request as written to the audit trail."""

    timestamp: str
    request_id: str
    method: str
    tool: str | None
    ok: bool
    error_code: int | None
    metadata: dict[str, object] = field(default_factory=dict)

    @classmethod
    def from_response(
        cls,
        request_id: str,
        method: str,
        tool: str | None,
        arguments: dict[str, object],
        response: dict[str, object],
    ) -> AuditEvent:
        """Build an event from the envelope sent back to the client."""
        error = response.get("error")
        code = error.get("code") if isinstance(error, dict) else None
        return cls(
            timestamp=utc_timestamp(),
            request_id=request_id,
            method=method,
            tool=tool,
            ok=error is None,
            error_code=code if isinstance(code, int) else None,
            metadata=sanitize_arguments(arguments),
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self), sort_keys=True)


def utc_timestamp() -> str:
    """Return the current time as ISO-8601 UTC with millisecond precision."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_arguments(arguments: dict[str, object]) -> dict[str, object]:
    """Reduce tool arguments to what is safe to persist.

    Tokens and collector names are kept. IP and URL filters can carry
    user data and are recorded as presence and length only.
    """
    sanitized: dict[str, object] = {}
    for key in sorted(arguments):
        value = arguments[key]
        if isinstance(value, str):
            if key in VERBATIM_STRING_ARGUMENTS:
                sanitized[key] = value
            else:
                sanitized[f"{key}_present"] = True
                sanitized[f"{key}_length"] = len(value)
        elif value is None or isinstance(value, (bool, int, float)):
            sanitized[key] = value
        else:
            sanitized[f"{key}_type"] = type(value).__name__
            if isinstance(value, (list, dict)):
                sanitized[f"{key}_length"] = len(value)
    return sanitized


class JsonlAuditLogger:
    """Writes one audit event per line under the server data directory."""

    def __init__(self, data_dir: Path) -> None:
        data_dir.mkdir(parents=True, exist_ok=True)
        self._path = data_dir / AUDIT_FILE_NAME

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: AuditEvent) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(f"{event.to_json()}\n")
