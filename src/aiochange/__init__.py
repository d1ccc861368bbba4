"""aiochange — Audited, single-occurrence edits of text files with versioned backups."""

from ._version import __version__
from .activity import ActivityLog
from .backups import BackupStore, next_version
from .exceptions import (
    ActivityLogError,
    AmbiguousMatchError,
    ApplyError,
    ChangeError,
    ChangeIOError,
    ChangeValidationError,
    PermissionDeniedError,
    TargetNotFoundError,
)
from .files import FileChangeManager, TextEditor
from .identity import Identity, is_identity, require_identity
from .models import (
    AddResult,
    BackupHandle,
    ChangeConfig,
    LineMatch,
    LogRecord,
    ModifyResult,
    RollbackResult,
    load_config,
)

__all__ = [
    "ActivityLog",
    "ActivityLogError",
    "AddResult",
    "AmbiguousMatchError",
    "ApplyError",
    "BackupHandle",
    "BackupStore",
    "ChangeConfig",
    "ChangeError",
    "ChangeIOError",
    "ChangeValidationError",
    "FileChangeManager",
    "Identity",
    "LineMatch",
    "LogRecord",
    "ModifyResult",
    "PermissionDeniedError",
    "RollbackResult",
    "TargetNotFoundError",
    "TextEditor",
    "__version__",
    "is_identity",
    "load_config",
    "next_version",
    "require_identity",
]
