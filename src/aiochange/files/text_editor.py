"""Line-oriented text primitives used by the change manager.

Content is handled as ``str`` with line endings preserved, so joining the
split lines back together always reproduces the input exactly.
"""

from __future__ import annotations

import difflib
import re

from ..models.config import MatchMode
from ..models.files import LineMatch


class TextEditor:
    """Stateless helpers for matching, substituting and inserting lines."""

    @staticmethod
    def split_lines(content: str) -> list[str]:
        """Split *content* on ``\\n`` only, keeping the line terminators.

        Unlike :meth:`str.splitlines`, form feeds and other Unicode line
        boundaries stay inside their line, as they do for ``grep``.
        """
        parts = content.split("\n")
        lines = [part + "\n" for part in parts[:-1]]
        if parts[-1]:
            lines.append(parts[-1])
        return lines

    @staticmethod
    def _strip_eol(line: str) -> tuple[str, str]:
        """Return ``(text, terminator)`` for a single line."""
        if line.endswith("\r\n"):
            return line[:-2], "\r\n"
        if line.endswith("\n"):
            return line[:-1], "\n"
        return line, ""

    @staticmethod
    def compile(search: str, mode: MatchMode) -> re.Pattern[str] | None:
        """Compile *search* in regex mode; literal mode needs no pattern.

        Raises :class:`re.error` for malformed patterns.
        """
        if mode == "regex":
            return re.compile(search)
        return None

    @staticmethod
    def find_matches(
        content: str,
        search: str,
        *,
        mode: MatchMode = "literal",
        prefix: bool = False,
    ) -> list[LineMatch]:
        """Return every line that contains *search* (or starts with it if *prefix*)."""
        pattern = TextEditor.compile(search, mode)
        matches: list[LineMatch] = []

        for number, line in enumerate(TextEditor.split_lines(content), start=1):
            text, _ = TextEditor._strip_eol(line)
            if pattern is not None:
                hit = pattern.match(text) if prefix else pattern.search(text)
                found = hit is not None
            else:
                found = text.startswith(search) if prefix else search in text
            if found:
                matches.append(LineMatch(line_number=number, content=text))

        return matches

    @staticmethod
    def count_matches(content: str, search: str, *, mode: MatchMode = "literal") -> int:
        """Return the number of lines containing *search*."""
        return len(TextEditor.find_matches(content, search, mode=mode))

    @staticmethod
    def replace_on_lines(
        content: str,
        search: str,
        replacement: str,
        line_numbers: list[int],
        *,
        mode: MatchMode = "literal",
    ) -> str:
        """Replace every occurrence of *search* on the given 1-based lines.

        In regex mode *replacement* may use group references; a bad
        reference raises :class:`re.error`.
        """
        pattern = TextEditor.compile(search, mode)
        wanted = set(line_numbers)
        lines = TextEditor.split_lines(content)

        for index, line in enumerate(lines):
            if index + 1 not in wanted:
                continue
            text, eol = TextEditor._strip_eol(line)
            if pattern is not None:
                text = pattern.sub(replacement, text)
            else:
                text = text.replace(search, replacement)
            lines[index] = text + eol

        return "".join(lines)

    @staticmethod
    def normalize_block(block: str) -> str:
        """Return *block* with a trailing newline."""
        return block if block.endswith("\n") else block + "\n"

    @staticmethod
    def insert_after(content: str, line_number: int, block: str) -> str:
        """Insert *block* as whole lines right after line *line_number*."""
        lines = TextEditor.split_lines(content)
        if not 1 <= line_number <= len(lines):
            raise IndexError(f"Line {line_number} out of range (1-{len(lines)})")

        anchor = lines[line_number - 1]
        if not anchor.endswith("\n"):
            lines[line_number - 1] = anchor + "\n"

        lines.insert(line_number, TextEditor.normalize_block(block))
        return "".join(lines)

    @staticmethod
    def append_block(content: str, block: str) -> str:
        """Append *block* as whole lines at the end of *content*."""
        if content and not content.endswith("\n"):
            content += "\n"
        return content + TextEditor.normalize_block(block)

    @staticmethod
    def normalized_diff(before: str, after: str, fromfile: str, tofile: str) -> str:
        """Return deterministic unified diff output for content comparisons."""
        before_lines = before.splitlines()
        after_lines = after.splitlines()
        return "\n".join(
            difflib.unified_diff(
                before_lines,
                after_lines,
                fromfile=fromfile,
                tofile=tofile,
                lineterm="",
            )
        )
