"""File-related models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class LineMatch(BaseModel):
    """A single matching line (1-based line number, content without newline)."""

    line_number: int
    content: str

    def __str__(self) -> str:
        return f"{self.line_number}:{self.content}"


class BackupHandle(BaseModel):
    """An immutable snapshot of a target file inside the backup directory."""

    path: str
    source_name: str
    identifier: str
    version: int | None = None
    created: datetime

    model_config = {"frozen": True}


class FilePathResult(BaseModel):
    """Base result for operations that target a single file path."""

    success: bool
    path: str
    backup: str | None = None
    message: str = ""
    warnings: list[str] = Field(default_factory=list)
    log_error: str | None = None


class ModifyResult(FilePathResult):
    """Result of a single-match substitution."""

    status: Literal["modified", "no_match", "unchanged"]
    matches: list[LineMatch] = Field(default_factory=list)
    diff: str = ""


class AddResult(FilePathResult):
    """Result of an append or anchored insertion."""

    position: Literal["end", "after_anchor"]
    anchor_line: int | None = None
    added_lines: int = 0
    diff: str = ""


class RollbackResult(FilePathResult):
    """Result of restoring a target file from a backup."""
