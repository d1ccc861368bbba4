"""Shared fixtures for aiochange tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from aiochange.files import FileChangeManager
from aiochange.identity import Identity
from aiochange.models import ChangeConfig


@pytest.fixture
def backup_dir(tmp_path: Path) -> Path:
    """Backup directory location (not created up front)."""
    return tmp_path / "file_bk"


@pytest.fixture
def change_config(backup_dir: Path) -> ChangeConfig:
    """Sequential-scheme configuration isolated under *tmp_path*."""
    return ChangeConfig(backup_dir=backup_dir, tag="CHG000")


@pytest.fixture
def actor() -> Identity:
    return Identity(name="tcadmin")


@pytest.fixture
def target(tmp_path: Path) -> Path:
    """A small configuration file to edit."""
    etc = tmp_path / "etc"
    etc.mkdir()
    path = etc / "app.conf"
    path.write_text("a=1\nb=2\n")
    return path


@pytest.fixture
def manager(change_config: ChangeConfig, actor: Identity) -> FileChangeManager:
    """Return a FileChangeManager running as ``tcadmin``."""
    return FileChangeManager(change_config, actor=actor)
