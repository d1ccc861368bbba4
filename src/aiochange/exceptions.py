"""Exception hierarchy for aiochange."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models.files import LineMatch


class ChangeError(Exception):
    """Base exception for all aiochange errors."""


class PermissionDeniedError(ChangeError):
    """Wrong operating identity, or the target file is not writable."""


class TargetNotFoundError(ChangeError):
    """A target file, backup or anchor line does not exist."""


class AmbiguousMatchError(ChangeError):
    """More than one line matched; the edit is refused.

    The offending lines are available on :attr:`matches`.
    """

    def __init__(self, message: str, matches: list[LineMatch] | None = None) -> None:
        super().__init__(message)
        self.matches: list[LineMatch] = list(matches or [])


class ChangeValidationError(ChangeError):
    """Missing parameters, bad configuration, or an unrelated backup file."""


class ApplyError(ChangeError):
    """The substitution or insertion failed and the target was restored."""


class ChangeIOError(ChangeError):
    """Reading, backing up or copying a file failed."""


class ActivityLogError(ChangeError):
    """The activity log could not be written."""
