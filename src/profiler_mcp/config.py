"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from profiler_mcp.security import SecurityLimits

CONFIG_FILE_NAME = "profiler_mcp.toml"

MAX_LIST_LIMIT_CAP = 1_000
MAX_RESPONSE_BYTES_CAP = 16 * 1024 * 1024
MAX_DUMP_DEPTH_CAP = 64

DEFAULT_SERVER_NAME = "Symfony MCP Profiler Bundle"
DEFAULT_SERVER_VERSION = "1.0.0"
DEFAULT_ENVIRONMENT = "dev"
DEFAULT_APPS_DIR = "apps"


@dataclass(slots=True, frozen=True)
class ServerInfo:
    """Name and version reported to MCP clients."""

    name: str
    version: str


@dataclass(slots=True, frozen=True)
class ProfilerConfig:
    """Where and whether to read profiler storage."""

    enabled: bool
    storage_path: Path | None
    environment: str
    apps_dir: str


@dataclass(slots=True, frozen=True)
class ServerConfig:
    """Fully merged server configuration."""

    project_root: Path
    data_dir: Path
    server: ServerInfo
    profiler: ProfilerConfig
    limits: SecurityLimits
    audit_enabled: bool


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    storage_path: Path | None = None
    environment: str | None = None
    profiler_enabled: bool | None = None
    max_list_limit: int | None = None
    max_response_bytes: int | None = None
    audit_enabled: bool | None = None


def default_config(project_root: Path) -> ServerConfig:
    """Build default config for a given project root."""
    resolved_root = project_root.resolve()
    return ServerConfig(
        project_root=resolved_root,
        data_dir=resolved_root / ".profiler_mcp",
        server=ServerInfo(name=DEFAULT_SERVER_NAME, version=DEFAULT_SERVER_VERSION),
        profiler=ProfilerConfig(
            enabled=True,
            storage_path=None,
            environment=DEFAULT_ENVIRONMENT,
            apps_dir=DEFAULT_APPS_DIR,
        ),
        limits=SecurityLimits(),
        audit_enabled=True,
    )


def load_project_config_file(project_root: Path) -> dict[str, object]:
    """Load optional profiler_mcp.toml from the project root."""
    config_path = project_root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _optional_str(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    return value


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def _resolve_storage_path(project_root: Path, raw: str | Path) -> Path:
    path = Path(raw)
    if not path.is_absolute():
        path = project_root / path
    return path.resolve(strict=False)


def merge_config(
    base: ServerConfig, file_payload: dict[str, object], overrides: CliOverrides
) -> ServerConfig:
    """Merge defaults, project config, then CLI/startup overrides."""
    server_payload = _get_table(file_payload, "server")
    profiler_payload = _get_table(file_payload, "profiler")
    limits_payload = _get_table(file_payload, "limits")
    audit_payload = _get_table(file_payload, "audit")

    storage_path = base.profiler.storage_path
    raw_storage_path = profiler_payload.get("storage_path")
    if raw_storage_path is not None:
        storage_path = _resolve_storage_path(
            base.project_root,
            _optional_str(raw_storage_path, "profiler.storage_path", ""),
        )

    max_list_limit = _optional_positive_int_with_cap(
        limits_payload.get("max_list_limit"),
        "limits.max_list_limit",
        base.limits.max_list_limit,
        MAX_LIST_LIMIT_CAP,
    )
    default_list_limit = _optional_positive_int_with_cap(
        limits_payload.get("default_list_limit"),
        "limits.default_list_limit",
        base.limits.default_list_limit,
        max_list_limit,
    )

    merged = ServerConfig(
        project_root=base.project_root,
        data_dir=base.data_dir,
        server=ServerInfo(
            name=_optional_str(server_payload.get("name"), "server.name", base.server.name),
            version=_optional_str(
                server_payload.get("version"), "server.version", base.server.version
            ),
        ),
        profiler=ProfilerConfig(
            enabled=_optional_bool(
                profiler_payload.get("enabled"), "profiler.enabled", base.profiler.enabled
            ),
            storage_path=storage_path,
            environment=_optional_str(
                profiler_payload.get("environment"),
                "profiler.environment",
                base.profiler.environment,
            ),
            apps_dir=_optional_str(
                profiler_payload.get("apps_dir"), "profiler.apps_dir", base.profiler.apps_dir
            ),
        ),
        limits=SecurityLimits(
            default_list_limit=default_list_limit,
            max_list_limit=max_list_limit,
            max_response_bytes=_optional_positive_int_with_cap(
                limits_payload.get("max_response_bytes"),
                "limits.max_response_bytes",
                base.limits.max_response_bytes,
                MAX_RESPONSE_BYTES_CAP,
            ),
            max_dump_depth=_optional_positive_int_with_cap(
                limits_payload.get("max_dump_depth"),
                "limits.max_dump_depth",
                base.limits.max_dump_depth,
                MAX_DUMP_DEPTH_CAP,
            ),
        ),
        audit_enabled=_optional_bool(
            audit_payload.get("enabled"), "audit.enabled", base.audit_enabled
        ),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: ServerConfig, overrides: CliOverrides) -> ServerConfig:
    """Apply startup overrides at highest precedence."""
    max_list_limit = _optional_positive_int_with_cap(
        overrides.max_list_limit,
        "overrides.max_list_limit",
        config.limits.max_list_limit,
        MAX_LIST_LIMIT_CAP,
    )
    max_response_bytes = _optional_positive_int_with_cap(
        overrides.max_response_bytes,
        "overrides.max_response_bytes",
        config.limits.max_response_bytes,
        MAX_RESPONSE_BYTES_CAP,
    )
    limits = SecurityLimits(
        default_list_limit=min(config.limits.default_list_limit, max_list_limit),
        max_list_limit=max_list_limit,
        max_response_bytes=max_response_bytes,
        max_dump_depth=config.limits.max_dump_depth,
    )
    storage_path = config.profiler.storage_path
    if overrides.storage_path is not None:
        storage_path = _resolve_storage_path(config.project_root, overrides.storage_path)
    profiler = ProfilerConfig(
        enabled=(
            overrides.profiler_enabled
            if overrides.profiler_enabled is not None
            else config.profiler.enabled
        ),
        storage_path=storage_path,
        environment=_optional_str(
            overrides.environment, "overrides.environment", config.profiler.environment
        ),
        apps_dir=config.profiler.apps_dir,
    )
    data_dir = overrides.data_dir or config.data_dir
    return ServerConfig(
        project_root=config.project_root,
        data_dir=data_dir.resolve(),
        server=config.server,
        profiler=profiler,
        limits=limits,
        audit_enabled=(
            overrides.audit_enabled
            if overrides.audit_enabled is not None
            else config.audit_enabled
        ),
    )


def load_effective_config(
    project_root: Path, overrides: CliOverrides | None = None
) -> ServerConfig:
    """Load effective config using merge order defaults -> project config -> overrides."""
    resolved_root = project_root.resolve()
    base = default_config(resolved_root)
    payload = load_project_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
