"""Single-occurrence file changes with automatic backup and rollback.

:class:`FileChangeManager` hosts the three operations of the tool:

* ``modify_file_content`` replaces text on the one line that contains it,
* ``add_file_content`` appends a block or inserts it after a unique anchor,
* ``rollback_file`` copies a backup back over the live file.

Every operation runs against an explicit :class:`ChangeConfig` and
:class:`Identity`, takes a backup through :class:`BackupStore` before
touching the target and writes its outcome to the :class:`ActivityLog`.
No lock is taken: two invocations editing the same file concurrently can
overwrite each other's result.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import shutil
from pathlib import Path

import aiofiles

from ..activity import SEPARATOR, ActivityLog
from ..backups import BackupStore
from ..exceptions import (
    AmbiguousMatchError,
    ApplyError,
    ChangeError,
    ChangeIOError,
    ChangeValidationError,
    PermissionDeniedError,
    TargetNotFoundError,
)
from ..identity import Identity, require_identity
from ..models.config import ChangeConfig
from ..models.files import AddResult, BackupHandle, LineMatch, ModifyResult, RollbackResult
from .text_editor import TextEditor

logger = logging.getLogger(__name__)


class FileChangeManager:
    """Backed-up, audited edits of individual text files."""

    def __init__(
        self,
        config: ChangeConfig,
        *,
        actor: Identity | None = None,
        backups: BackupStore | None = None,
        activity: ActivityLog | None = None,
    ) -> None:
        self.config = config
        self.actor = actor if actor is not None else Identity.current()
        self.backups = backups if backups is not None else BackupStore(config)
        self.activity = activity if activity is not None else ActivityLog(config)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _target_path(file_path: str | Path) -> Path:
        if not str(file_path):
            raise ChangeValidationError("Missing required parameters: file path")
        return Path(file_path).expanduser().absolute()

    @staticmethod
    def _require(**params: str | None) -> None:
        """Raise :class:`ChangeValidationError` naming every empty parameter."""
        missing = [name for name, value in params.items() if not value]
        if missing:
            raise ChangeValidationError(f"Missing required parameters: {', '.join(missing)}")

    @staticmethod
    def _check_target(target: Path) -> None:
        if not target.is_file():
            raise TargetNotFoundError(f"File {target} does not exist")
        if not os.access(target, os.W_OK):
            raise PermissionDeniedError(f"No write permission for file {target}")

    async def _read(self, target: Path) -> str:
        try:
            async with aiofiles.open(
                target,
                encoding=self.config.encoding,
                errors="surrogateescape",
                newline="",
            ) as fh:
                return await fh.read()
        except OSError as exc:
            raise ChangeIOError(f"Cannot read {target}: {exc}") from exc

    async def _write(self, target: Path, content: str) -> None:
        # Truncate in place so the target keeps its inode, owner and mode.
        async with aiofiles.open(
            target,
            "w",
            encoding=self.config.encoding,
            errors="surrogateescape",
            newline="",
        ) as fh:
            await fh.write(content)

    async def _restore_from(self, backup: BackupHandle, target: Path) -> None:
        await asyncio.to_thread(shutil.copyfile, backup.path, target)

    async def _apply_failed(
        self,
        backup: BackupHandle,
        target: Path,
        reason: str,
        exc: Exception,
    ) -> ApplyError:
        """Restore *target* from *backup* and return the error to raise."""
        try:
            await self._restore_from(backup, target)
        except OSError as restore_exc:
            logger.error("Restoring %s from %s failed: %s", target, backup.path, restore_exc)
            return ApplyError(
                f"{reason}: {exc}; restoring from {backup.path} also failed: {restore_exc}"
            )

        logger.warning("Restored %s from %s after failed change", target, backup.path)
        return ApplyError(f"{reason}: {exc}; file restored from {backup.path}")

    async def _record_failure(self, exc: ChangeError, target: str) -> None:
        details: list[str] = []
        if isinstance(exc, AmbiguousMatchError):
            details.append("Matching lines details:")
            details.extend(f"Line {m.line_number}: {m.content}" for m in exc.matches)

        logger.error("%s", exc)
        await self.activity.record("error", self.actor, target, str(exc), details)

    def _search(self, content: str, text: str, *, prefix: bool = False) -> list[LineMatch]:
        try:
            return TextEditor.find_matches(
                content,
                text,
                mode=self.config.match_mode,
                prefix=prefix,
            )
        except re.error as exc:
            raise ChangeValidationError(f"Invalid search pattern {text!r}: {exc}") from exc

    # ------------------------------------------------------------------
    # Modify
    # ------------------------------------------------------------------

    async def modify_file_content(
        self,
        identity: str,
        file_path: str | Path,
        search_text: str,
        replace_text: str,
    ) -> ModifyResult:
        """Replace *search_text* on the single line that contains it.

        Zero matching lines is a successful no-op; two or more raises
        :class:`AmbiguousMatchError` and leaves the file untouched. Every
        occurrence on the matching line is replaced.
        """
        target_name = str(file_path)
        try:
            target = self._target_path(file_path)
            target_name = str(target)
            self._require(identity=identity, search_text=search_text)
            require_identity(identity, self.actor)
            self._check_target(target)

            backup: BackupHandle | None = None
            if self.config.backup_before_search:
                backup = await self.backups.backup(target)

            before = await self._read(target)
            matches = self._search(before, search_text)

            if not matches:
                warning = f"No matches found for keyword '{search_text}' in file {target}"
                logger.warning("%s", warning)
                log_error = await self.activity.record("warning", self.actor, target_name, warning)
                return ModifyResult(
                    success=True,
                    path=target_name,
                    backup=backup.path if backup else None,
                    status="no_match",
                    message=warning,
                    warnings=[warning],
                    log_error=log_error,
                )

            if len(matches) > 1:
                raise AmbiguousMatchError(
                    f"Multiple matches found ({len(matches)} occurrences) in file {target}",
                    matches,
                )

            if backup is None:
                backup = await self.backups.backup(target)

            try:
                after = TextEditor.replace_on_lines(
                    before,
                    search_text,
                    replace_text,
                    [matches[0].line_number],
                    mode=self.config.match_mode,
                )
            except re.error as exc:
                error = await self._apply_failed(backup, target, "Modification failed", exc)
                raise error from exc

            if after == before:
                warning = f"Replacement produced no change, file {target} unchanged"
                logger.warning("%s", warning)
                log_error = await self.activity.record(
                    "warning",
                    self.actor,
                    target_name,
                    warning,
                    [f"Found match: {matches[0]}"],
                )
                return ModifyResult(
                    success=True,
                    path=target_name,
                    backup=backup.path,
                    status="unchanged",
                    matches=matches,
                    message=warning,
                    warnings=[warning],
                    log_error=log_error,
                )

            try:
                await self._write(target, after)
            except OSError as exc:
                error = await self._apply_failed(backup, target, "Modification failed", exc)
                raise error from exc

            diff = TextEditor.normalized_diff(before, after, backup.path, target_name)
            log_error = await self.activity.record(
                "modify",
                self.actor,
                target_name,
                f"{target_name} (backup {backup.identifier})",
                [
                    "Found match:",
                    str(matches[0]),
                    f"Original text: {search_text}",
                    f"New text: {replace_text}",
                    f"Backup file: {backup.path}",
                ],
            )
            logger.info(
                "Modified %s (line %d), backup %s", target, matches[0].line_number, backup.path
            )

            return ModifyResult(
                success=True,
                path=target_name,
                backup=backup.path,
                status="modified",
                matches=matches,
                diff=diff,
                message=f"Modification successful! Backup saved as: {backup.path}",
                log_error=log_error,
            )
        except ChangeError as exc:
            await self._record_failure(exc, target_name)
            raise

    # ------------------------------------------------------------------
    # Add
    # ------------------------------------------------------------------

    async def add_file_content(
        self,
        identity: str,
        file_path: str | Path,
        content: str,
        after: str | None = None,
    ) -> AddResult:
        """Append *content*, or insert it right after the one line starting with *after*.

        *content* may span several lines and is inserted as one block.
        """
        target_name = str(file_path)
        try:
            target = self._target_path(file_path)
            target_name = str(target)
            self._require(identity=identity, content=content)
            require_identity(identity, self.actor)
            self._check_target(target)

            backup: BackupHandle | None = None
            if self.config.backup_before_search:
                backup = await self.backups.backup(target)

            before = await self._read(target)

            anchor_line: int | None = None
            if after:
                matches = self._search(before, after, prefix=True)
                if not matches:
                    raise TargetNotFoundError(f"No match found for text: {after} in file {target}")
                if len(matches) > 1:
                    raise AmbiguousMatchError(
                        f"Multiple matches found ({len(matches)} occurrences) for text: {after}",
                        matches,
                    )
                anchor_line = matches[0].line_number

            if backup is None:
                backup = await self.backups.backup(target)

            try:
                if anchor_line is not None:
                    updated = TextEditor.insert_after(before, anchor_line, content)
                else:
                    updated = TextEditor.append_block(before, content)
                await self._write(target, updated)
            except (OSError, IndexError) as exc:
                error = await self._apply_failed(backup, target, "Failed to add content", exc)
                raise error from exc

            block = TextEditor.normalize_block(content)
            details = ["Added content:", SEPARATOR, *block.splitlines(), SEPARATOR]
            if after:
                details.append(f"Inserted after: {after} (line {anchor_line})")
            details.append(f"Backup file: {backup.path}")
            log_error = await self.activity.record("add", self.actor, target_name, "", details)

            position = "after_anchor" if anchor_line is not None else "end"
            logger.info("Added content to %s (%s), backup %s", target, position, backup.path)

            return AddResult(
                success=True,
                path=target_name,
                backup=backup.path,
                position=position,
                anchor_line=anchor_line,
                added_lines=len(TextEditor.split_lines(block)),
                diff=TextEditor.normalized_diff(before, updated, backup.path, target_name),
                message=(
                    "Successfully added content at specified position"
                    if anchor_line is not None
                    else "Successfully added content at end of file"
                ),
                log_error=log_error,
            )
        except ChangeError as exc:
            await self._record_failure(exc, target_name)
            raise

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    async def list_backups(self, file_path: str | Path) -> list[BackupHandle]:
        """Return the backups of *file_path*, newest first."""
        return await self.backups.list_backups(self._target_path(file_path))

    async def rollback_file(
        self,
        file_path: str | Path,
        backup_path: str | Path | None = None,
    ) -> RollbackResult:
        """Overwrite *file_path* with *backup_path*, or with its latest backup."""
        target_name = str(file_path)
        try:
            target = self._target_path(file_path)
            target_name = str(target)

            if backup_path:
                backup = await self.backups.resolve(target, Path(backup_path))
            else:
                backup = await self.backups.latest(target)

            if not target.is_file():
                raise TargetNotFoundError(f"File {target} does not exist")

            try:
                await self._restore_from(backup, target)
            except OSError as exc:
                raise ChangeIOError(
                    f"Failed to rollback file {target} from {backup.path}: {exc}"
                ) from exc

            log_error = await self.activity.record(
                "rollback",
                self.actor,
                target_name,
                "",
                [f"Restored from backup: {backup.path}"],
            )
            logger.info("Rolled back %s to %s", target, backup.path)

            return RollbackResult(
                success=True,
                path=target_name,
                backup=backup.path,
                message=f"Successfully rolled back to: {backup.path}",
                log_error=log_error,
            )
        except ChangeError as exc:
            await self._record_failure(exc, target_name)
            raise
