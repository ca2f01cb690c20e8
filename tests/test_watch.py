# tests/test_watch.py
import threading
import time

from watchdog.events import DirModifiedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent

from peak_lang.compiler.config import load_config
from peak_lang.compiler.watch import DebouncedRunner, PeakEventHandler, watch_directory


class _CountingRunner:
    def __init__(self):
        self.triggers = 0

    def trigger(self):
        self.triggers += 1


def test_bursts_are_coalesced():
    calls = []
    runner = DebouncedRunner(lambda: calls.append(time.monotonic()), debounce=0.05)
    for _ in range(5):
        runner.trigger()
    time.sleep(0.4)
    assert len(calls) == 1


def test_cancel_drops_pending_run():
    calls = []
    runner = DebouncedRunner(lambda: calls.append(1), debounce=0.05)
    runner.trigger()
    runner.cancel()
    time.sleep(0.2)
    assert calls == []


def test_only_peak_file_events_trigger():
    runner = _CountingRunner()
    handler = PeakEventHandler(runner)

    handler.on_modified(FileModifiedEvent("src/Queue.peak"))
    handler.on_created(FileCreatedEvent("src/New.peak"))
    handler.on_moved(FileMovedEvent("src/.Tmp.swp", "src/Moved.peak"))
    assert runner.triggers == 3

    handler.on_modified(FileModifiedEvent("src/Queue.cls"))
    handler.on_modified(DirModifiedEvent("src"))
    handler.on_moved(FileMovedEvent("src/A.peak", "src/A.bak"))
    assert runner.triggers == 3


def test_watch_compiles_then_stops(write_tree, queue_source):
    root = write_tree({"Queue.peak": queue_source, "Use.peak": "public class Use { Queue<Id> q; }"})
    stop = threading.Event()
    stop.set()
    assert watch_directory(load_config(str(root)), stop=stop) == 0
    assert (root / "QueueId.cls").exists()
