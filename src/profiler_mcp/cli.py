"""Command-line access to stored profiles: list, show and purge."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TextIO

from profiler_mcp.config import CliOverrides, load_effective_config
from profiler_mcp.security import TokenBlockedError
from profiler_mcp.storage import Profile, ProfilerError, ProfileRepository, collector_data
from profiler_mcp.tools.builtin import format_profile_time

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INVALID = 2

LIST_HEADERS = ("Token", "IP", "Method", "URL", "Time", "Status")

Confirm = Callable[[str], bool]


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the profiler command parser."""
    parser = argparse.ArgumentParser(
        prog="profiler-mcp-cli",
        description="Interact with the Symfony profiler storage.",
    )
    parser.add_argument("--project-root", required=False, default=".")
    parser.add_argument("--storage-path", required=False, default=None)
    parser.add_argument("--environment", required=False, default=None)
    actions = parser.add_subparsers(dest="action", required=True)

    list_parser = actions.add_parser("list", help="List the most recent profiles")
    list_parser.add_argument("-l", "--limit", type=int, default=20)

    show_parser = actions.add_parser("show", help="Show details for a specific profile token")
    show_parser.add_argument("token")
    show_parser.add_argument("-c", "--collector", default=None)

    purge_parser = actions.add_parser("purge", help="Delete all profiler data")
    purge_parser.add_argument("-y", "--yes", action="store_true", default=False)
    return parser


def main(
    argv: list[str] | None = None,
    out: TextIO | None = None,
    confirm: Confirm | None = None,
) -> int:
    """Entrypoint for the profiler command."""
    stream = out if out is not None else sys.stdout
    args = build_arg_parser().parse_args(argv)
    try:
        config = load_effective_config(
            Path(args.project_root),
            CliOverrides(
                storage_path=Path(args.storage_path) if args.storage_path else None,
                environment=args.environment,
                audit_enabled=False,
            ),
        )
    except (OSError, ValueError) as error:
        _error(stream, str(error))
        return EXIT_FAILURE
    repository = ProfileRepository(config.project_root, config.profiler)

    try:
        if args.action == "list":
            return _execute_list(repository, args.limit, stream)
        if args.action == "show":
            return _execute_show(
                repository, args.token, args.collector, config.limits.max_dump_depth, stream
            )
        return _execute_purge(repository, args.yes, confirm or _prompt_confirm, stream)
    except (ProfilerError, TokenBlockedError) as error:
        _error(stream, str(error))
        return EXIT_FAILURE


def _execute_list(repository: ProfileRepository, limit: int, out: TextIO) -> int:
    if limit < 1:
        _error(out, "The --limit option must be a positive integer.")
        return EXIT_INVALID
    _title(out, f"Listing the {limit} most recent profiles")
    summaries = repository.find(limit=limit)
    if not summaries:
        _block(out, "WARNING", "No profiles found")
        return EXIT_SUCCESS
    rows = [
        (
            summary.token,
            summary.ip,
            summary.method,
            summary.url,
            format_profile_time(summary.time),
            "" if summary.status_code is None else str(summary.status_code),
        )
        for summary in summaries
    ]
    _write_lines(out, render_table(LIST_HEADERS, rows))
    return EXIT_SUCCESS


def _execute_show(
    repository: ProfileRepository,
    token: str,
    collector_name: str | None,
    max_depth: int,
    out: TextIO,
) -> int:
    profile = repository.load(token)
    _title(out, f'Profile for "{token}"')
    _section(out, "Profile Information")
    _write_lines(out, _definition_list(profile))

    if collector_name is None:
        _section(out, "Available Collectors")
        rows = [
            (name, f"Use --collector={name} to view details")
            for name in profile.collector_names()
        ]
        _write_lines(out, render_table(("Collector", "Data"), rows))
        return EXIT_SUCCESS

    if not profile.has_collector(collector_name):
        _error(out, f'No collector named "{collector_name}" found')
        return EXIT_FAILURE
    _section(out, f"Collector: {collector_name}")
    data = collector_data(profile.collectors[collector_name], max_depth=max_depth)
    if isinstance(data, (dict, list)):
        _write_lines(out, format_nested(data))
    else:
        out.write(f"{json.dumps(data)}\n")
    return EXIT_SUCCESS


def _execute_purge(
    repository: ProfileRepository, assume_yes: bool, confirm: Confirm, out: TextIO
) -> int:
    if not assume_yes and not confirm("Are you sure you want to purge all profiler data?"):
        _block(out, "NOTE", "Operation cancelled")
        return EXIT_SUCCESS
    purged = repository.purge()
    for location in purged:
        out.write(f" * {location.path}\n")
    _block(out, "OK", "All profiler data has been purged")
    return EXIT_SUCCESS


def render_table(headers: tuple[str, ...], rows: list[tuple[str, ...]]) -> list[str]:
    """Render rows as a bordered text table."""
    widths = [len(header) for header in headers]
    for row in rows:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))
    border = "+" + "+".join("-" * (width + 2) for width in widths) + "+"

    def line(cells: tuple[str, ...]) -> str:
        padded = (f" {cell.ljust(widths[index])} " for index, cell in enumerate(cells))
        return "|" + "|".join(padded) + "|"

    lines = [border, line(headers), border]
    lines.extend(line(row) for row in rows)
    lines.append(border)
    return lines


def format_nested(data: dict[object, object] | list[object], level: int = 0) -> list[str]:
    """Render nested collector data as indented ``key: value`` lines."""
    items = data.items() if isinstance(data, dict) else enumerate(data)
    indent = "  " * level
    lines: list[str] = []
    for key, value in items:
        if isinstance(value, (dict, list)):
            lines.append(f"{indent}{key}:")
            lines.extend(format_nested(value, level + 1))
        else:
            lines.append(f"{indent}{key}: {_scalar_text(value)}")
    return lines


def _scalar_text(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _definition_list(profile: Profile) -> list[str]:
    pairs = [
        ("Token", profile.token),
        ("IP", profile.ip),
        ("Method", profile.method),
        ("URL", profile.url),
        ("Time", format_profile_time(profile.time)),
        ("Status", "" if profile.status_code is None else str(profile.status_code)),
    ]
    width = max(len(label) for label, _ in pairs)
    return [f" {label.ljust(width)}  {value}" for label, value in pairs]


def _prompt_confirm(question: str) -> bool:
    answer = input(f" {question} (yes/no) [no]: ")
    return answer.strip().lower() in {"y", "yes"}


def _title(out: TextIO, text: str) -> None:
    out.write(f"\n{text}\n{'=' * len(text)}\n\n")


def _section(out: TextIO, text: str) -> None:
    out.write(f"\n{text}\n{'-' * len(text)}\n\n")


def _block(out: TextIO, label: str, message: str) -> None:
    out.write(f"\n [{label}] {message}\n\n")


def _error(out: TextIO, message: str) -> None:
    _block(out, "ERROR", message)


def _write_lines(out: TextIO, lines: list[str]) -> None:
    for text in lines:
        out.write(f"{text}\n")


if __name__ == "__main__":
    raise SystemExit(main())
