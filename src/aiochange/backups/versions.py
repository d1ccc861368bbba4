"""Backup naming conventions and next-version allocation.

Versions are never persisted: the next number is recomputed from the names
already present in the backup directory. Two processes allocating for the
same file at the same time can therefore obtain the same number; no lock
is taken.
"""

from __future__ import annotations

import re
from pathlib import Path

BACKUP_SUFFIX = ".bak"


def sequential_name(file_path: Path, tag: str, version: int) -> str:
    """Return ``<basename>.<tag>_<n>.bak``."""
    return f"{file_path.name}.{tag}_{version}{BACKUP_SUFFIX}"


def timestamped_name(file_path: Path, timestamp: str) -> str:
    """Return ``<basename>.bak.<timestamp>``."""
    return f"{file_path.name}{BACKUP_SUFFIX}.{timestamp}"


def sequential_pattern(file_path: Path, tag: str) -> re.Pattern[str]:
    """Pattern matching sequential backups of *file_path*; group 1 is the version."""
    return re.compile(
        rf"^{re.escape(file_path.name)}\.{re.escape(tag)}_(\d+)(?:{re.escape(BACKUP_SUFFIX)})?$"
    )


def timestamped_pattern(file_path: Path) -> re.Pattern[str]:
    """Pattern matching timestamped backups of *file_path*; group 1 is the stamp."""
    return re.compile(rf"^{re.escape(file_path.name)}{re.escape(BACKUP_SUFFIX)}\.(.+)$")


def parse_version(name: str, file_path: Path, tag: str) -> int | None:
    """Return the version encoded in backup *name*, or ``None`` if it is not one."""
    match = sequential_pattern(file_path, tag).match(name)
    if match is None:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        return None


def next_version(backup_dir: Path, file_path: Path, tag: str) -> int:
    """Return ``max(existing versions) + 1`` for *file_path* and *tag*, or 1.

    Names whose suffix does not parse are ignored.
    """
    if not backup_dir.is_dir():
        return 1

    versions: list[int] = []
    for entry in backup_dir.iterdir():
        version = parse_version(entry.name, file_path, tag)
        if version is not None:
            versions.append(version)

    return max(versions) + 1 if versions else 1
