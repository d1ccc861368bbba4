"""Versioned backup store.

Every mutating operation copies the live file here first. Backups are
written with exclusive creation and never modified afterwards; removing old
backups is left to external retention jobs.

All public async methods delegate to synchronous helpers via
``asyncio.to_thread`` so that file copies never block the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from datetime import datetime
from pathlib import Path

from ..exceptions import ChangeIOError, ChangeValidationError, TargetNotFoundError
from ..models.config import ChangeConfig
from ..models.files import BackupHandle
from .versions import (
    next_version,
    parse_version,
    sequential_name,
    sequential_pattern,
    timestamped_name,
    timestamped_pattern,
)

logger = logging.getLogger(__name__)


class BackupStore:
    """Creates, lists and resolves backups inside ``config.backup_dir``."""

    def __init__(self, config: ChangeConfig) -> None:
        self.config = config
        self.backup_dir = config.backup_dir

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_dir_sync(self) -> None:
        """Create the backup directory with ``config.backup_dir_mode`` if absent.

        The directory is world-writable by default so that backups taken
        under one account can later be listed and restored under another.
        """
        if self.backup_dir.is_dir():
            return

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self.backup_dir, self.config.backup_dir_mode)
        logger.info("Created backup directory %s", self.backup_dir)

    def _allocate_name(self, file_path: Path) -> tuple[str, str, int | None]:
        """Return ``(file name, identifier, version)`` for a new backup."""
        if self.config.scheme == "timestamped":
            stamp = datetime.now().strftime(self.config.timestamp_format)
            return timestamped_name(file_path, stamp), stamp, None

        version = next_version(self.backup_dir, file_path, self.config.tag)
        identifier = f"{self.config.tag}_{version}"
        return sequential_name(file_path, self.config.tag, version), identifier, version

    def _handle_for(self, backup_path: Path, file_path: Path) -> BackupHandle:
        stat = backup_path.stat()
        name = backup_path.name
        version = parse_version(name, file_path, self.config.tag)

        ts_match = timestamped_pattern(file_path).match(name)
        if version is not None:
            identifier = f"{self.config.tag}_{version}"
        elif ts_match is not None:
            identifier = ts_match.group(1)
        else:
            identifier = name

        return BackupHandle(
            path=str(backup_path),
            source_name=file_path.name,
            identifier=identifier,
            version=version,
            created=datetime.fromtimestamp(stat.st_mtime).astimezone(),
        )

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def _backup_sync(self, file_path: Path) -> BackupHandle:
        """Synchronous backup — called via ``asyncio.to_thread``."""
        try:
            self._ensure_dir_sync()
        except OSError as exc:
            raise ChangeIOError(f"Cannot create backup directory {self.backup_dir}: {exc}") from exc

        name, identifier, version = self._allocate_name(file_path)
        dest = self.backup_dir / name

        created = False
        try:
            with file_path.open("rb") as src, dest.open("xb") as dst:
                created = True
                shutil.copyfileobj(src, dst)
        except FileExistsError as exc:
            raise ChangeIOError(f"Backup {dest} already exists; refusing to overwrite it") from exc
        except OSError as exc:
            if created:
                dest.unlink(missing_ok=True)
            raise ChangeIOError(f"Failed to create backup of {file_path}: {exc}") from exc

        logger.info("Backed up %s to %s", file_path, dest)
        return BackupHandle(
            path=str(dest),
            source_name=file_path.name,
            identifier=identifier,
            version=version,
            created=datetime.now().astimezone(),
        )

    async def backup(self, file_path: Path) -> BackupHandle:
        """Copy *file_path* byte-for-byte to a new versioned or timestamped name."""
        return await asyncio.to_thread(self._backup_sync, file_path)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def _list_backups_sync(self, file_path: Path) -> list[BackupHandle]:
        """Synchronous listing — called via ``asyncio.to_thread``."""
        if not self.backup_dir.is_dir():
            return []

        if self.config.scheme == "timestamped":
            pattern = timestamped_pattern(file_path)
        else:
            pattern = sequential_pattern(file_path, self.config.tag)

        handles = [
            self._handle_for(entry, file_path)
            for entry in self.backup_dir.iterdir()
            if entry.is_file() and pattern.match(entry.name)
        ]

        if self.config.scheme == "timestamped":
            handles.sort(key=lambda h: (h.created, h.path), reverse=True)
        else:
            handles.sort(key=lambda h: h.version or 0, reverse=True)
        return handles

    async def list_backups(self, file_path: Path) -> list[BackupHandle]:
        """Return the backups of *file_path*, newest first."""
        try:
            return await asyncio.to_thread(self._list_backups_sync, file_path)
        except OSError as exc:
            logger.error("Error listing backups for %s: %s", file_path, exc)
            raise ChangeIOError(f"Cannot list backups in {self.backup_dir}: {exc}") from exc

    async def latest(self, file_path: Path) -> BackupHandle:
        """Return the most recent backup of *file_path*.

        Raises :class:`TargetNotFoundError` when there is none.
        """
        handles = await self.list_backups(file_path)
        if not handles:
            raise TargetNotFoundError(f"No backup file found for {file_path}")
        return handles[0]

    # ------------------------------------------------------------------
    # Explicit backups
    # ------------------------------------------------------------------

    def _resolve_sync(self, file_path: Path, backup_path: Path) -> BackupHandle:
        if file_path.name not in backup_path.name:
            raise ChangeValidationError(
                f"Backup file {backup_path} is not related to {file_path}"
            )
        if not backup_path.is_file():
            raise TargetNotFoundError(f"Specified backup file does not exist: {backup_path}")
        try:
            return self._handle_for(backup_path, file_path)
        except OSError as exc:
            raise ChangeIOError(f"Cannot read backup file {backup_path}: {exc}") from exc

    async def resolve(self, file_path: Path, backup_path: Path) -> BackupHandle:
        """Validate an explicitly chosen backup of *file_path*."""
        return await asyncio.to_thread(self._resolve_sync, file_path, backup_path)
