from __future__ import annotations
import sys, platform, datetime

import lark

from peak_lang import __version__, __dev__


def _ensure_utf8_stdout() -> None:
    reconfigure = getattr(sys.stdout, "reconfigure", None)
    if reconfigure is not None:
        reconfigure(encoding="utf-8")


def _get_versions() -> dict[str, str]:
    return {
        "app": __version__,
        "python": platform.python_version(),
        "lark": getattr(lark, "__version__", "unknown"),
    }


def print_banner() -> None:
    _ensure_utf8_stdout()
    v = _get_versions()
    today = datetime.date.today().isoformat()
    dev_marker = " (dev)" if __dev__ else ""

    # ANSI styling only for an interactive terminal
    use_ansi = sys.stdout.isatty()

    if use_ansi:
        BOLD, DIM, RESET = "\x1b[1m", "\x1b[2m", "\x1b[0m"
    else:
        BOLD, DIM, RESET = "", "", ""

    print(
        f"{BOLD} ⛰  Peak Generics Compiler{RESET} • {v['app']}{dev_marker}\n"
        f"{DIM}Python {v['python']} • lark {v['lark']} • {today}{RESET}\n"
    )
