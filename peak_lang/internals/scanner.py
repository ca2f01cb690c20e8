# internals/scanner.py
"""
Character-level cursor over a Peak source buffer.

Peak never parses the full Apex grammar. Every scanner in the compiler walks
the raw text with a `Scanner`, recognising just enough structure to stay out
of comments and string literals, read identifiers, and match balanced
brackets. Positions are plain string offsets; line/column numbers are only
computed when a diagnostic is built.
"""
from __future__ import annotations

import string
from typing import Optional, Tuple

from peak_lang.internals import errors as er
from peak_lang.internals.errors import ErrorMessage, PeakSyntaxError
from peak_lang.internals.report import Span

# Returned for any out-of-range read instead of raising
NUL = "\0"

IDENTIFIER_CHARS = frozenset(string.ascii_letters + string.digits + "_")
IDENTIFIER_START = frozenset(string.ascii_letters + "_")


def is_identifier_char(ch: str) -> bool:
    """Report whether `ch` can be part of an Apex identifier."""
    return ch in IDENTIFIER_CHARS


class Scanner:
    """Mutable cursor over an immutable source string."""

    def __init__(self, source: str, filename: Optional[str] = None, pos: int = 0) -> None:
        self.source = source
        self.filename = filename
        self.pos = pos

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def current(self) -> str:
        return self.peek(0)

    def peek(self, offset: int = 1) -> str:
        pos = self.pos + offset
        if 0 <= pos < len(self.source):
            return self.source[pos]
        return NUL

    def advance(self, n: int = 1) -> None:
        self.pos = min(self.pos + n, len(self.source))

    def startswith(self, text: str) -> bool:
        return self.source.startswith(text, self.pos)

    # ------------------------------------------------------------------
    # Skipping
    # ------------------------------------------------------------------

    def skip_whitespace(self) -> None:
        while not self.at_end and self.current().isspace():
            self.advance(1)

    def skip_comments(self) -> bool:
        """Skip any run of `//...` and `/*...*/` comments at the cursor.

        Block comments do not nest; an unterminated one runs to end of input.
        Returns True if anything was skipped.
        """
        start = self.pos
        while True:
            if self.startswith("//"):
                end = self.source.find("\n", self.pos)
                self.pos = len(self.source) if end == -1 else end + 1
            elif self.startswith("/*"):
                end = self.source.find("*/", self.pos + 2)
                self.pos = len(self.source) if end == -1 else end + 2
            else:
                break
        return self.pos != start

    def skip_whitespace_and_comments(self) -> None:
        while True:
            start = self.pos
            self.skip_whitespace()
            self.skip_comments()
            if self.pos == start:
                return

    def skip_string_literal(self) -> bool:
        """Skip an Apex string literal ('...', backslash escapes) at the cursor."""
        if self.current() != "'":
            return False
        self.advance(1)
        while not self.at_end:
            ch = self.current()
            if ch == "\\":
                self.advance(2)
                continue
            self.advance(1)
            if ch == "'":
                break
        return True

    def skip_balanced(self, open_ch: str, close_ch: str) -> bool:
        """Move past the bracket group that opens at the cursor.

        Comments and string literals inside the group are skipped, so braces
        inside them do not count. Returns False (cursor at end of input) when
        the group is never closed.
        """
        if self.current() != open_ch:
            return False
        depth = 0
        while not self.at_end:
            if self.skip_comments() or self.skip_string_literal():
                continue
            ch = self.current()
            self.advance(1)
            if ch == open_ch:
                depth += 1
            elif ch == close_ch:
                depth -= 1
                if depth == 0:
                    return True
        return False

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def parse_identifier(self) -> str:
        """Consume a maximal run of letters, digits and underscores.

        Returns "" without moving when the cursor is not on an identifier
        character.
        """
        start = self.pos
        while not self.at_end and is_identifier_char(self.current()):
            self.advance(1)
        return self.source[start:self.pos]

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def line_and_column(self, pos: int) -> Tuple[int, int]:
        """1-based line and column of offset `pos`."""
        pos = max(0, min(pos, len(self.source)))
        line = self.source.count("\n", 0, pos) + 1
        line_start = self.source.rfind("\n", 0, pos) + 1
        return line, pos - line_start + 1

    def source_line(self, pos: int) -> str:
        """Full text of the line containing offset `pos`, without newline."""
        pos = max(0, min(pos, len(self.source)))
        start = self.source.rfind("\n", 0, pos) + 1
        end = self.source.find("\n", pos)
        if end == -1:
            end = len(self.source)
        return self.source[start:end]

    def error(self, pos: int, em: ErrorMessage, **kwargs) -> PeakSyntaxError:
        """Build (not raise) a positioned syntax error."""
        line, col = self.line_and_column(pos)
        diag = er.diagnostic(em, Span(line, col), filename=self.filename,
                             source_line=self.source_line(pos), **kwargs)
        return PeakSyntaxError(diag)
