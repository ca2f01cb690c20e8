# compiler/pipeline.py
"""One compilation of a source directory: read, transpile, report, write."""
from __future__ import annotations

import logging
import sys
import time
from typing import List, Optional, TextIO

from tqdm import tqdm

from peak_lang.compiler.config import Config
from peak_lang.compiler.loader import APEX_EXTENSION, find_peak_files, read_sources, write_meta_xml, write_output
from peak_lang.internals import errors as er
from peak_lang.internals.errors import ERR
from peak_lang.internals.report import Reporter
from peak_lang.semantics.transpiler import Transpiler
from peak_lang.semantics.units import FileOutcome

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERRORS = 2


def compile_directory(cfg: Config, out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> int:
    """Compile every `.peak` file below `cfg.source_dir`.

    Diagnostics go to `err` (default stderr), progress and the summary line
    to `out` (default stdout). A run with any discovery error writes nothing.

    Returns:
        EXIT_OK, or EXIT_ERRORS when any error was reported.
    """
    out = out or sys.stdout
    err = err or sys.stderr
    start = time.perf_counter()
    reporter = Reporter()

    try:
        paths = find_peak_files(cfg.source_dir)
    except FileNotFoundError:
        reporter.add(er.diagnostic(ERR.CE4001, None, filename=cfg.source_dir, path=cfg.source_dir))
        reporter.print(stream=err)
        return EXIT_ERRORS
    if not paths:
        reporter.add(er.diagnostic(ERR.CE4002, None, filename=cfg.source_dir, path=cfg.source_dir))
        reporter.print(stream=err)
        return EXIT_ERRORS

    files, problems = read_sources(paths)
    if problems:
        for diag in problems:
            reporter.add(diag)
        reporter.print(stream=err)
        return EXIT_ERRORS

    if cfg.verbose:
        print(f"Compiling {len(files)} file(s) in {cfg.source_dir}", file=out)

    transpiler = Transpiler(
        output_path_fn=lambda path: cfg.resolve_output_path(path, APEX_EXTENSION),
        forced_classes=cfg.instantiate.classes,
        forced_methods=cfg.instantiate.methods,
        output_extension=APEX_EXTENSION,
    )
    outcomes = transpiler.transpile(files)

    generated, skipped = _write_outcomes(cfg, outcomes, reporter, out, err)

    if reporter.has_errors:
        reporter.print(stream=err)

    elapsed_ms = (time.perf_counter() - start) * 1000
    errors = sum(1 for d in reporter.items if d.kind == "error")
    print(file=out)
    if errors:
        print(f"✗ Compiled {generated} file(s) (skipped {skipped} template(s)) "
              f"with {errors} error(s) in {elapsed_ms:.0f}ms", file=out)
        return EXIT_ERRORS

    print(f"✓ Compiled {generated} file(s) (skipped {skipped} template(s)) in {elapsed_ms:.0f}ms", file=out)
    return EXIT_OK


def _write_outcomes(cfg: Config, outcomes: List[FileOutcome], reporter: Reporter,
                    out: TextIO, err: TextIO) -> tuple[int, int]:
    """Write every successful outcome; returns (generated, skipped templates)."""
    skipped = 0
    pending: List[FileOutcome] = []
    for outcome in outcomes:
        if outcome.error is not None:
            reporter.add(outcome.error)
        elif outcome.is_template:
            skipped += 1
            if cfg.verbose:
                print(f"Skipped template: {outcome.original_path}", file=out)
        elif outcome.output_path is not None:
            pending.append(outcome)

    show_progress = not cfg.verbose and getattr(err, "isatty", lambda: False)() and len(pending) > 1
    if show_progress:
        pbar = tqdm(total=len(pending), desc="Writing", unit="file", file=err,
                    bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]")

    meta_xml = cfg.generate_meta_xml()
    generated = 0
    for outcome in pending:
        try:
            write_output(outcome.output_path, outcome.content)
            if cfg.write_meta and write_meta_xml(outcome.output_path, meta_xml):
                logger.debug("wrote %s-meta.xml", outcome.output_path)
        except OSError as e:
            reporter.add(er.diagnostic(ERR.CE4004, None, filename=outcome.output_path,
                                       path=outcome.output_path, reason=e.strerror or str(e)))
            continue
        finally:
            if show_progress:
                pbar.update(1)

        generated += 1
        if not show_progress:
            if outcome.original_path:
                print(f"Generated: {outcome.original_path} -> {outcome.output_path}", file=out)
            else:
                print(f"Generated concrete class: {outcome.output_path}", file=out)

    if show_progress:
        pbar.close()
    return generated, skipped
