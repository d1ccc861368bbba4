"""Append-only activity log.

Each :class:`LogRecord` is rendered as a block of text lines closed by a
separator line, and the whole block is appended with one unbuffered write so
that records from concurrent invocations do not interleave inside a block.
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime

import aiofiles

from .exceptions import ActivityLogError
from .identity import Identity
from .models.config import ChangeConfig
from .models.log import LogKind, LogRecord

logger = logging.getLogger(__name__)

SEPARATOR = "-" * 40

_HEADINGS: dict[str, str] = {
    "modify": "Modified file",
    "add": "Successfully added content",
    "rollback": "Successfully rolled back file",
    "warning": "Warning",
    "error": "Error",
}


class ActivityLog:
    """Writes audit records to ``config.activity_log_path``."""

    def __init__(self, config: ChangeConfig) -> None:
        self.config = config
        self.path = config.activity_log_path

    def format_record(self, record: LogRecord) -> str:
        """Render *record* as the text block appended to the log."""
        stamp = record.timestamp.strftime(self.config.log_date_format)
        heading = _HEADINGS[record.kind]
        lines = [
            f"[{stamp}] {heading}: {record.summary}" if record.summary else f"[{stamp}] {heading}",
            f"User: {record.actor}",
            f"File: {record.target}",
            *record.details,
            SEPARATOR,
        ]
        return "\n".join(lines) + "\n"

    def _ensure_parent(self) -> None:
        parent = self.path.parent
        if parent.is_dir():
            return
        parent.mkdir(parents=True, exist_ok=True)
        if parent == self.config.backup_dir:
            os.chmod(parent, self.config.backup_dir_mode)

    async def write(self, record: LogRecord) -> None:
        """Append *record*; raises :class:`ActivityLogError` on I/O failure."""
        try:
            # Undecodable bytes read from targets come back out unchanged.
            block = self.format_record(record).encode("utf-8", errors="surrogateescape")
            await asyncio.to_thread(self._ensure_parent)
            async with aiofiles.open(self.path, "ab", buffering=0) as fh:
                await fh.write(block)
        except (OSError, UnicodeError) as exc:
            raise ActivityLogError(f"Cannot write activity log {self.path}: {exc}") from exc

    async def record(
        self,
        kind: LogKind,
        actor: Identity | str,
        target: str,
        summary: str = "",
        details: list[str] | None = None,
    ) -> str | None:
        """Build and append a record.

        Log failures never undo the operation being recorded: the error is
        logged and its message returned so callers can report it, ``None``
        is returned on success.
        """
        entry = LogRecord(
            timestamp=datetime.now(),
            actor=str(actor),
            target=target,
            kind=kind,
            summary=summary,
            details=details or [],
        )
        try:
            await self.write(entry)
        except ActivityLogError as exc:
            logger.error("%s", exc)
            return str(exc)
        return None
