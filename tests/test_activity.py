"""Tests for the activity log."""

from __future__ import annotations

import asyncio
import re
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from aiochange.activity import SEPARATOR, ActivityLog
from aiochange.exceptions import ActivityLogError
from aiochange.identity import Identity
from aiochange.models import ChangeConfig, LogRecord


@pytest.fixture
def activity(change_config: ChangeConfig) -> ActivityLog:
    return ActivityLog(change_config)


class TestFormatRecord:
    def test_block_layout(self, activity: ActivityLog) -> None:
        record = LogRecord(
            timestamp=datetime(2026, 1, 2, 3, 4, 5),
            actor="tcadmin",
            target="/etc/app.conf",
            kind="rollback",
            summary="",
            details=["Restored from backup: /var/tmp/file_bk/app.conf.CHG000_1.bak"],
        )
        assert activity.format_record(record).splitlines() == [
            "[2026-01-02 03:04:05] Successfully rolled back file",
            "User: tcadmin",
            "File: /etc/app.conf",
            "Restored from backup: /var/tmp/file_bk/app.conf.CHG000_1.bak",
            SEPARATOR,
        ]

    def test_summary_in_heading(self, activity: ActivityLog) -> None:
        record = LogRecord(
            timestamp=datetime(2026, 1, 2, 3, 4, 5),
            actor="tcadmin",
            target="/etc/app.conf",
            kind="error",
            summary="File /etc/app.conf does not exist",
        )
        first = activity.format_record(record).splitlines()[0]
        assert first == "[2026-01-02 03:04:05] Error: File /etc/app.conf does not exist"


class TestRecord:
    async def test_creates_log_and_parent(
        self, activity: ActivityLog, change_config: ChangeConfig, backup_dir: Path
    ) -> None:
        error = await activity.record("add", Identity(name="tcadmin"), "/etc/app.conf")

        assert error is None
        assert backup_dir.is_dir()
        content = change_config.activity_log_path.read_text()
        assert re.match(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] Successfully added", content)

    async def test_appends_in_order(
        self, activity: ActivityLog, change_config: ChangeConfig
    ) -> None:
        await activity.record("modify", "tcadmin", "/etc/a", "first")
        await activity.record("modify", "tcadmin", "/etc/b", "second")

        content = change_config.activity_log_path.read_text()
        assert content.count(SEPARATOR) == 2
        assert content.index("first") < content.index("second")

    async def test_custom_log_path(self, change_config: ChangeConfig, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "changes.log"
        config = change_config.model_copy(update={"log_file": log_file})

        await ActivityLog(config).record("warning", "tcadmin", "/etc/a", "nothing to do")

        assert "Warning: nothing to do" in log_file.read_text()

    async def test_write_failure_reported(self, activity: ActivityLog) -> None:
        with patch("aiofiles.open", side_effect=OSError("read-only file system")):
            error = await activity.record("modify", "tcadmin", "/etc/a")
        assert error is not None
        assert "read-only file system" in error

    async def test_write_raises(self, activity: ActivityLog) -> None:
        record = LogRecord(
            timestamp=datetime.now(),
            actor="tcadmin",
            target="/etc/a",
            kind="modify",
            summary="",
        )
        with patch("aiofiles.open", side_effect=OSError("disk error")):
            with pytest.raises(ActivityLogError, match="disk error"):
                await activity.write(record)

    async def test_undecodable_text_written_as_bytes(
        self, activity: ActivityLog, change_config: ChangeConfig
    ) -> None:
        content = b"x\xff".decode("utf-8", errors="surrogateescape")

        error = await activity.record("error", "tcadmin", "/etc/a", "ambiguous", [content])

        assert error is None
        assert b"x\xff\n" in change_config.activity_log_path.read_bytes()

    async def test_parent_created_off_loop(
        self, activity: ActivityLog, change_config: ChangeConfig
    ) -> None:
        with patch("aiochange.activity.asyncio.to_thread", wraps=asyncio.to_thread) as to_thread:
            await activity.record("modify", "tcadmin", "/etc/a")

        to_thread.assert_called_once_with(activity._ensure_parent)
        assert change_config.activity_log_path.is_file()
