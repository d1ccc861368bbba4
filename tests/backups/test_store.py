"""Tests for BackupStore."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from aiochange.backups import BackupStore
from aiochange.exceptions import ChangeIOError, ChangeValidationError, TargetNotFoundError
from aiochange.models import ChangeConfig


@pytest.fixture
def store(change_config: ChangeConfig) -> BackupStore:
    return BackupStore(change_config)


class TestBackup:
    async def test_creates_world_writable_directory(
        self, store: BackupStore, target: Path, backup_dir: Path
    ) -> None:
        await store.backup(target)
        assert backup_dir.is_dir()
        assert stat.S_IMODE(backup_dir.stat().st_mode) == 0o777

    async def test_existing_directory_mode_untouched(
        self, store: BackupStore, target: Path, backup_dir: Path
    ) -> None:
        backup_dir.mkdir(mode=0o750)
        os.chmod(backup_dir, 0o750)
        await store.backup(target)
        assert stat.S_IMODE(backup_dir.stat().st_mode) == 0o750

    async def test_byte_for_byte_copy(self, store: BackupStore, target: Path) -> None:
        target.write_bytes(b"a=1\r\n\xff\xfe binary\n")
        handle = await store.backup(target)
        assert Path(handle.path).read_bytes() == b"a=1\r\n\xff\xfe binary\n"

    async def test_sequential_versions(self, store: BackupStore, target: Path) -> None:
        first = await store.backup(target)
        second = await store.backup(target)

        assert first.version == 1
        assert first.identifier == "CHG000_1"
        assert Path(first.path).name == "app.conf.CHG000_1.bak"
        assert second.version == 2
        assert first.source_name == "app.conf"

    async def test_timestamped(self, change_config: ChangeConfig, target: Path) -> None:
        config = change_config.model_copy(
            update={"scheme": "timestamped", "timestamp_format": "%Y%m%d"}
        )
        handle = await BackupStore(config).backup(target)

        assert handle.version is None
        assert Path(handle.path).name == f"app.conf.bak.{handle.identifier}"
        assert len(handle.identifier) == 8

    async def test_missing_source(
        self, store: BackupStore, tmp_path: Path, backup_dir: Path
    ) -> None:
        with pytest.raises(ChangeIOError, match="Failed to create backup"):
            await store.backup(tmp_path / "missing.conf")
        assert list(backup_dir.iterdir()) == []

    async def test_refuses_to_overwrite(
        self, store: BackupStore, target: Path, backup_dir: Path
    ) -> None:
        backup_dir.mkdir()
        existing = backup_dir / "app.conf.CHG000_1.bak"
        existing.write_text("older snapshot\n")

        with patch("aiochange.backups.store.next_version", return_value=1):
            with pytest.raises(ChangeIOError, match="already exists"):
                await store.backup(target)

        assert existing.read_text() == "older snapshot\n"

    async def test_directory_creation_failure(self, store: BackupStore, target: Path) -> None:
        with patch.object(Path, "mkdir", side_effect=PermissionError("denied")):
            with pytest.raises(ChangeIOError, match="Cannot create backup directory"):
                await store.backup(target)


class TestListing:
    async def test_newest_first(self, store: BackupStore, target: Path) -> None:
        for _ in range(3):
            await store.backup(target)
        handles = await store.list_backups(target)
        assert [h.version for h in handles] == [3, 2, 1]

    async def test_latest_by_version_not_mtime(
        self, store: BackupStore, target: Path, backup_dir: Path
    ) -> None:
        for _ in range(3):
            await store.backup(target)
        os.utime(backup_dir / "app.conf.CHG000_1.bak", (4_000_000_000, 4_000_000_000))

        latest = await store.latest(target)
        assert latest.version == 3

    async def test_only_own_tag_and_file(
        self, store: BackupStore, target: Path, backup_dir: Path
    ) -> None:
        backup_dir.mkdir()
        for name in ("app.conf.CHG001_5.bak", "other.conf.CHG000_1.bak", "app.conf.bak.x"):
            (backup_dir / name).write_text("")
        await store.backup(target)

        handles = await store.list_backups(target)
        assert [Path(h.path).name for h in handles] == ["app.conf.CHG000_1.bak"]

    async def test_timestamped_latest(
        self, change_config: ChangeConfig, target: Path, backup_dir: Path
    ) -> None:
        config = change_config.model_copy(update={"scheme": "timestamped"})
        store = BackupStore(config)
        backup_dir.mkdir()
        older = backup_dir / "app.conf.bak.20250101_000000_000000"
        newer = backup_dir / "app.conf.bak.20260101_000000_000000"
        older.write_text("old\n")
        newer.write_text("new\n")
        os.utime(older, (1_700_000_000, 1_700_000_000))
        os.utime(newer, (1_800_000_000, 1_800_000_000))

        latest = await store.latest(target)
        assert latest.path == str(newer)
        assert latest.identifier == "20260101_000000_000000"

    async def test_no_backups(self, store: BackupStore, target: Path) -> None:
        assert await store.list_backups(target) == []
        with pytest.raises(TargetNotFoundError, match="No backup file found"):
            await store.latest(target)


class TestResolve:
    async def test_valid(self, store: BackupStore, target: Path) -> None:
        created = await store.backup(target)
        handle = await store.resolve(target, Path(created.path))
        assert handle.version == 1
        assert handle.path == created.path

    async def test_any_name_containing_basename(
        self, store: BackupStore, target: Path, tmp_path: Path
    ) -> None:
        manual = tmp_path / "app.conf.manual-copy"
        manual.write_text("a=0\n")
        handle = await store.resolve(target, manual)
        assert handle.identifier == "app.conf.manual-copy"
        assert handle.version is None

    async def test_unrelated(self, store: BackupStore, target: Path, tmp_path: Path) -> None:
        with pytest.raises(ChangeValidationError, match="not related"):
            await store.resolve(target, tmp_path / "hosts.CHG000_1.bak")

    async def test_missing(self, store: BackupStore, target: Path, backup_dir: Path) -> None:
        with pytest.raises(TargetNotFoundError):
            await store.resolve(target, backup_dir / "app.conf.CHG000_1.bak")

    async def test_unreadable_metadata(self, store: BackupStore, target: Path) -> None:
        created = await store.backup(target)
        with patch.object(store, "_handle_for", side_effect=PermissionError("stat denied")):
            with pytest.raises(ChangeIOError, match="stat denied"):
                await store.resolve(target, Path(created.path))
