"""Operating identity of the caller.

The identity is supplied by the execution context instead of being read
ad hoc inside each operation. Real privilege switching is left to the host
(``su``, ``sudo``, service accounts); this module only compares names.
"""

from __future__ import annotations

import getpass

from pydantic import BaseModel

from .exceptions import PermissionDeniedError


class Identity(BaseModel):
    """An OS-level account name."""

    name: str

    model_config = {"frozen": True}

    @classmethod
    def current(cls) -> Identity:
        """Return the identity of the running process."""
        try:
            name = getpass.getuser()
        except (OSError, KeyError) as exc:
            raise PermissionDeniedError(f"Cannot determine the current user: {exc}") from exc
        return cls(name=name)

    def __str__(self) -> str:
        return self.name


def is_identity(required: str, actual: Identity) -> bool:
    """Return ``True`` if *actual* is the *required* account."""
    return bool(required) and actual.name == required


def require_identity(required: str, actual: Identity) -> None:
    """Raise :class:`PermissionDeniedError` unless *actual* is *required*."""
    if not is_identity(required, actual):
        raise PermissionDeniedError(
            f"This command can only be run as user {required} (current user: {actual.name})"
        )
