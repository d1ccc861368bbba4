"""Command-line interface for aiochange."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TextIO

from .activity import SEPARATOR
from .exceptions import AmbiguousMatchError, ChangeError
from .files import FileChangeManager
from .models import ChangeConfig, FilePathResult, load_config


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=Path, help="YAML configuration file.")
    parser.add_argument("--backup-dir", type=Path, help="Directory that receives backups.")
    parser.add_argument("--log-file", type=Path, help="Activity log path.")
    parser.add_argument("--tag", help="Change identifier used in sequential backup names.")
    parser.add_argument(
        "--scheme",
        choices=["sequential", "timestamped"],
        help="Backup naming scheme.",
    )
    parser.add_argument(
        "--match-mode",
        choices=["literal", "regex"],
        help="Treat search and anchor text literally (default) or as regular expressions.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")


def _build_config(args: argparse.Namespace) -> ChangeConfig:
    return load_config(
        args.config,
        backup_dir=args.backup_dir,
        log_file=args.log_file,
        tag=args.tag,
        scheme=args.scheme,
        match_mode=args.match_mode,
    )


def _emit(stream: TextIO, text: str) -> None:
    """Write *text*, showing bytes that did not decode as escapes."""
    stream.write(text.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace"))


def _report(result: FilePathResult) -> None:
    for warning in result.warnings:
        _emit(sys.stdout, f"Warning: {warning}\n")
    if result.message and result.message not in result.warnings:
        _emit(sys.stdout, f"{result.message}\n")
    if result.log_error:
        _emit(sys.stderr, f"Warning: activity log not written: {result.log_error}\n")


async def _run_modify(manager: FileChangeManager, args: argparse.Namespace) -> int:
    result = await manager.modify_file_content(args.identity, args.file, args.search, args.replace)
    if result.status == "modified":
        _emit(sys.stdout, "Found following match:\n")
        for match in result.matches:
            _emit(sys.stdout, f"{match}\n")
        _emit(sys.stdout, f"Details:\n{SEPARATOR}\n{result.diff}\n{SEPARATOR}\n")
    _report(result)
    return 0


async def _run_add(manager: FileChangeManager, args: argparse.Namespace) -> int:
    result = await manager.add_file_content(args.identity, args.file, args.content, args.after)
    _report(result)
    if result.backup:
        _emit(sys.stdout, f"Backup saved as: {result.backup}\n")
    return 0


async def _run_rollback(manager: FileChangeManager, args: argparse.Namespace) -> int:
    result = await manager.rollback_file(args.file, args.backup)
    _report(result)
    return 0


async def _run_backups(manager: FileChangeManager, args: argparse.Namespace) -> int:
    handles = await manager.list_backups(args.file)
    if not handles:
        _emit(sys.stdout, f"No backups found for {args.file}\n")
    for handle in handles:
        _emit(sys.stdout, f"{handle.created.isoformat(timespec='seconds')}  {handle.path}\n")
    return 0


def _report_error(exc: ChangeError) -> None:
    _emit(sys.stderr, f"Error: {exc}\n")
    if isinstance(exc, AmbiguousMatchError):
        _emit(sys.stderr, f"Details:\n{SEPARATOR}\n")
        for match in exc.matches:
            _emit(sys.stderr, f"Line {match.line_number}: {match.content}\n")
        _emit(sys.stderr, f"{SEPARATOR}\n")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="aiochange")
    subparsers = parser.add_subparsers(dest="command_name", required=True)

    modify_parser = subparsers.add_parser("modify", help="Replace text on its single matching line")
    _add_common_flags(modify_parser)
    modify_parser.add_argument("identity", help="Account the change must run as")
    modify_parser.add_argument("file", help="Target file")
    modify_parser.add_argument("search", help="Text to search for")
    modify_parser.add_argument("replace", help="Replacement text")
    modify_parser.set_defaults(func=_run_modify)

    add_parser = subparsers.add_parser(
        "add", help="Append content, optionally after an anchor line"
    )
    _add_common_flags(add_parser)
    add_parser.add_argument("identity", help="Account the change must run as")
    add_parser.add_argument("file", help="Target file")
    add_parser.add_argument("content", help="Content to add (may contain newlines)")
    add_parser.add_argument("--after", help="Insert after the single line starting with this text")
    add_parser.set_defaults(func=_run_add)

    rollback_parser = subparsers.add_parser("rollback", help="Restore a file from a backup")
    _add_common_flags(rollback_parser)
    rollback_parser.add_argument("file", help="Target file")
    rollback_parser.add_argument("backup", nargs="?", help="Backup to restore (default: latest)")
    rollback_parser.set_defaults(func=_run_rollback)

    backups_parser = subparsers.add_parser("backups", help="List the backups of a file")
    _add_common_flags(backups_parser)
    backups_parser.add_argument("file", help="Target file")
    backups_parser.set_defaults(func=_run_backups)

    args = parser.parse_args(argv)
    # Outcomes are reported on stdout/stderr; diagnostics only with -v.
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.CRITICAL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        manager = FileChangeManager(_build_config(args))
        exit_code = asyncio.run(args.func(manager, args))
    except ChangeError as exc:
        _report_error(exc)
        exit_code = 1
    raise SystemExit(exit_code)


__all__ = ["main"]
