from __future__ import annotations
import argparse, logging, sys

from peak_lang import __version__
from peak_lang.compiler.config import CLIFlags, load_config
from peak_lang.compiler.pipeline import EXIT_ERRORS, compile_directory
from peak_lang.internals.errors import ConfigError
from peak_lang.internals.version import print_banner

EPILOG = """\
examples:
  peak                                      compile the current directory
  peak examples/                            compile a specific directory
  peak --watch                              watch the current directory
  peak --out-dir build/ src/                write output to src/build/
  peak --root-dir . --out-dir build/ src/   keep structure below src/

configuration:
  peakconfig.json in the source directory; flags override it.
  Without an output directory, .cls files are written next to their .peak sources.
"""


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="peak",
        description="Peak to Apex transpiler: generic classes and methods for Salesforce Apex",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    ap.add_argument("directory", nargs="?", default=".", help="Directory with .peak sources (default: .)")
    ap.add_argument("-w", "--watch", action="store_true", help="Watch for changes and recompile")
    ap.add_argument("-r", "--root-dir", metavar="DIR",
                    help="Root directory for preserving structure (overrides config)")
    ap.add_argument("-o", "--out-dir", metavar="DIR", help="Output directory (overrides config)")
    ap.add_argument("--api-version", metavar="V", help="API version for generated .cls-meta.xml files")
    ap.add_argument("-v", "--verbose", action="store_true", help="Print every file processed")
    ap.add_argument("--no-meta", action="store_true", help="Do not write .cls-meta.xml files")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    print_banner()

    flags = CLIFlags(
        root_dir=args.root_dir,
        out_dir=args.out_dir,
        api_version=args.api_version,
        watch=args.watch,
        verbose=args.verbose,
        write_meta=not args.no_meta,
    )
    try:
        cfg = load_config(args.directory, flags)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERRORS

    if cfg.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if cfg.watch:
        # Imported here so plain compiles do not start watchdog machinery
        from peak_lang.compiler.watch import watch_directory
        return watch_directory(cfg)

    return compile_directory(cfg)


if __name__ == "__main__":
    raise SystemExit(main())
