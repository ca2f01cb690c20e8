from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

class C:
    """ANSI color/style escape codes."""
    RESET = "\x1b[0m"
    BOLD  = "\x1b[1m"
    DIM   = "\x1b[2m"
    RED   = "\x1b[31m"
    YELLOW = "\x1b[33m"
    CYAN  = "\x1b[36m"
    GRAY  = "\x1b[90m"

@dataclass
class Span:
    line: int
    col: int

@dataclass
class Diagnostic:
    kind: str
    code: str
    message: str
    span: Optional[Span] = None
    filename: Optional[str] = None
    source_line: str = ""  # Offending line, kept so reports never re-read files

    def __str__(self) -> str:
        where = self.filename or "<input>"
        if self.span:
            where = f"{where}:{self.span.line}:{self.span.col}"
        return f"{where}: {self.message}"


class Reporter:
    def __init__(self, filename: str = "<input>") -> None:
        self.filename = filename
        self.items: List[Diagnostic] = []

    def error(self, code: str, msg: str, span: Optional[Span], source_line: str = "",
              filename: Optional[str] = None):
        self.items.append(Diagnostic("error", code, msg, span, filename or self.filename, source_line))

    def warn(self, code: str, msg: str, span: Optional[Span], source_line: str = "",
             filename: Optional[str] = None):
        self.items.append(Diagnostic("warning", code, msg, span, filename or self.filename, source_line))

    def add(self, diagnostic: Diagnostic) -> None:
        self.items.append(diagnostic)

    @property
    def has_errors(self) -> bool:
        return any(d.kind == "error" for d in self.items)

    @property
    def has_warnings(self) -> bool:
        return any(d.kind == "warning" for d in self.items)

    @staticmethod
    def _display_name(filename: str) -> str:
        # Relative path with ./ prefix when below cwd, otherwise untouched
        try:
            rel_path = Path(filename).resolve().relative_to(Path.cwd())
            return f"./{rel_path}"
        except (ValueError, OSError):
            return filename

    def format(self, use_color: bool = True, use_unicode: bool = True) -> str:
        """Render all diagnostics.

        use_color   → ANSI colorize location/kind/markers
        use_unicode → use │ / ╰ / ╯ guides instead of the ASCII caret block
        """
        out: List[str] = []

        for d in self.items:
            filename = self._display_name(d.filename or self.filename)
            loc = f"{filename}:{d.span.line}:{d.span.col}" if d.span else filename

            message = d.message if d.message.endswith('.') else f"{d.message}."

            if use_color:
                kind = f"{C.BOLD}{C.RED}error{C.RESET}" if d.kind == "error" else f"{C.BOLD}{C.YELLOW}warning{C.RESET}"
                head = f"{C.CYAN}{loc}{C.RESET}: {kind} [{C.DIM}{d.code}{C.RESET}]: {message}"
            else:
                head = f"{loc}: {d.kind} [{d.code}]: {message}"

            if not d.span:
                out.append(head)
                continue

            # Tabs in the source line are mirrored so the caret stays aligned
            start = max(1, d.span.col)
            pad = "".join("\t" if ch == "\t" else " " for ch in d.source_line[:start - 1])
            pad += " " * max(0, start - 1 - len(d.source_line))
            error_color = C.RED if d.kind == "error" else C.YELLOW

            if use_unicode:
                if use_color:
                    out.append(f"{C.GRAY}  ╭──┤ {C.RESET}{head}")
                    out.append(f"{C.GRAY}  │{C.RESET}  {d.source_line}")
                    out.append(f"{C.GRAY}  │{C.RESET}  {error_color}{pad}┯{C.RESET}")
                    out.append(f"{C.GRAY}  ╰{'─' * (start + 1)}{C.RESET}{error_color}╯{C.RESET}")
                else:
                    out.append(f"  ╭──┤ {head}")
                    out.append(f"  │  {d.source_line}")
                    out.append(f"  │  {pad}┯")
                    out.append(f"  ╰{'─' * (start + 1)}╯")
            else:
                out.append(head)
                out.append(f"  | {d.source_line}")
                out.append(f"  ` {pad}^")

        return "\n".join(out)

    def print(self, stream=None, use_color: Optional[bool] = None, use_unicode: Optional[bool] = None) -> None:
        """Print diagnostics to `stream` (default: sys.stderr).

        Color is auto-enabled for TTY unless NO_COLOR or TERM=dumb.
        Unicode guides are auto-enabled for TTY unless NO_UNICODE or TERM=dumb.
        """
        import os, sys
        stream = stream or sys.stderr

        is_tty = getattr(stream, "isatty", lambda: False)()
        dumb = os.getenv("TERM") == "dumb"
        if use_color is None:
            use_color = bool(is_tty and os.getenv("NO_COLOR") is None and not dumb)
        if use_unicode is None:
            use_unicode = bool(is_tty and os.getenv("NO_UNICODE") is None and not dumb)

        text = self.format(use_color=use_color, use_unicode=use_unicode)
        if text:
            print(text, file=stream)
