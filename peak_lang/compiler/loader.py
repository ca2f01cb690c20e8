# compiler/loader.py
"""Finding, reading and writing files for a compilation run."""
from __future__ import annotations

import os
from typing import Dict, List, Tuple

from peak_lang.internals import errors as er
from peak_lang.internals.errors import ERR
from peak_lang.internals.report import Diagnostic

PEAK_EXTENSION = ".peak"
APEX_EXTENSION = ".cls"
META_SUFFIX = "-meta.xml"


def find_peak_files(root: str) -> List[str]:
    """All `.peak` files below `root`, sorted; hidden directories are skipped.

    Raises:
        FileNotFoundError: `root` is not a directory.
    """
    if not os.path.isdir(root):
        raise FileNotFoundError(root)

    found: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for name in filenames:
            if name.endswith(PEAK_EXTENSION):
                found.append(os.path.join(dirpath, name))
    return sorted(found)


def read_sources(paths: List[str]) -> Tuple[Dict[str, str], List[Diagnostic]]:
    """Read every file into memory before any scanning starts.

    Returns:
        ({path: content}, diagnostics for files that could not be read).
    """
    files: Dict[str, str] = {}
    problems: List[Diagnostic] = []
    for path in paths:
        try:
            with open(path, "r", encoding="utf-8") as f:
                files[path] = f.read()
        except (OSError, UnicodeDecodeError) as e:
            reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
            problems.append(er.diagnostic(ERR.CE4003, None, filename=path, path=path, reason=reason))
    return files, problems


def write_output(path: str, content: str) -> None:
    """Write `content` to `path`, creating parent directories.

    Raises:
        OSError: The file or one of its directories could not be written.
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


def write_meta_xml(output_path: str, content: str) -> bool:
    """Write `<output>-meta.xml` unless it already exists.

    Returns:
        True when a new file was written.
    """
    meta_path = output_path + META_SUFFIX
    if os.path.exists(meta_path):
        return False
    write_output(meta_path, content)
    return True
