# compiler/watch.py
"""
Watch mode.

A watchdog Observer watches the source directory recursively. Events for
`.peak` files (create, modify, move into place) restart a debounce timer;
when it fires, the directory is recompiled. Compilations never overlap:
a run that is triggered while another is in progress waits for it.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from peak_lang.compiler.config import Config
from peak_lang.compiler.loader import PEAK_EXTENSION
from peak_lang.compiler.pipeline import compile_directory

logger = logging.getLogger(__name__)

# Quiet period after the last event before recompiling
DEBOUNCE_SECONDS = 0.5


class DebouncedRunner:
    """Coalesces bursts of triggers into one call of `action`."""

    def __init__(self, action: Callable[[], None], debounce: float = DEBOUNCE_SECONDS) -> None:
        self._action = action
        self._debounce = debounce
        self._lock = threading.Lock()
        self._run_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    def trigger(self) -> None:
        """Restart the quiet period."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._debounce, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        with self._run_lock:
            self._action()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class PeakEventHandler(FileSystemEventHandler):
    """Watchdog handler that triggers the runner for `.peak` changes."""

    def __init__(self, runner: DebouncedRunner) -> None:
        super().__init__()
        self._runner = runner

    def on_created(self, event):
        self._handle(event.is_directory, event.src_path)

    def on_modified(self, event):
        self._handle(event.is_directory, event.src_path)

    def on_moved(self, event):
        self._handle(event.is_directory, event.dest_path)

    def _handle(self, is_directory: bool, path) -> None:
        if is_directory:
            return
        if isinstance(path, bytes):
            path = path.decode()
        if not path.endswith(PEAK_EXTENSION):
            return
        logger.debug("change detected: %s", path)
        self._runner.trigger()


def watch_directory(cfg: Config, stop: Optional[threading.Event] = None) -> int:
    """Compile once, then recompile on every change until interrupted.

    Args:
        cfg: Configuration of the run.
        stop: Ends the loop when set (Ctrl+C does the same).

    Returns:
        Exit code of the last compilation.
    """
    last_code = [compile_directory(cfg)]

    def recompile() -> None:
        print("\nChange detected, recompiling...")
        last_code[0] = compile_directory(cfg)

    runner = DebouncedRunner(recompile)
    observer = Observer()
    observer.schedule(PeakEventHandler(runner), cfg.source_dir, recursive=True)
    observer.daemon = True
    observer.start()
    logger.info("watching %s", cfg.source_dir)
    print(f"\nWatching {cfg.source_dir} for changes (Ctrl+C to stop)...")

    stop = stop or threading.Event()
    try:
        while not stop.is_set():
            time.sleep(0.2)
    except KeyboardInterrupt:
        print("\nStopping watch mode.")
    finally:
        runner.cancel()
        observer.stop()
        observer.join(timeout=2)
        logger.info("stopped watching %s", cfg.source_dir)

    return last_code[0]
