"""File change operations."""

from .manager import FileChangeManager
from .text_editor import TextEditor

__all__ = ["FileChangeManager", "TextEditor"]
