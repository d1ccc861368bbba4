"""Pydantic models for aiochange."""

from .config import BackupScheme, ChangeConfig, MatchMode, load_config
from .files import (
    AddResult,
    BackupHandle,
    FilePathResult,
    LineMatch,
    ModifyResult,
    RollbackResult,
)
from .log import LogKind, LogRecord

__all__ = [
    "AddResult",
    "BackupHandle",
    "BackupScheme",
    "ChangeConfig",
    "FilePathResult",
    "LineMatch",
    "LogKind",
    "LogRecord",
    "MatchMode",
    "ModifyResult",
    "RollbackResult",
    "load_config",
]
