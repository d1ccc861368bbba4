"""Backup versioning and storage."""

from .store import BackupStore
from .versions import next_version, sequential_name, timestamped_name

__all__ = [
    "BackupStore",
    "next_version",
    "sequential_name",
    "timestamped_name",
]
