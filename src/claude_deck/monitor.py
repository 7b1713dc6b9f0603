"""Live monitoring of the Claude data directories.

A watchdog observer feeds raw notifications into a bounded queue; a single
background thread drains it, keeps only usage-log paths and hands one
``ChangeEvent`` per path to the sink. The thread sleeps briefly after each
notification so bursts of appends are paced rather than merged.
"""

import logging
import os
import queue
import threading
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from claude_deck.errors import MonitorError
from claude_deck.paths import LOG_SUFFIX, discover_roots

log = logging.getLogger(__name__)

PACING_INTERVAL = 0.1  # seconds
QUEUE_SIZE = 1024

_WATCHED_TYPES = {EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_DELETED, EVENT_TYPE_MOVED}
_STOP = object()


class ChangeKind(str, Enum):
    CREATED = "created"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class ChangeEvent:
    path: str
    kind: ChangeKind


def classify(event: FileSystemEvent) -> list[ChangeEvent]:
    """Translate one watchdog event into change events for usage-log paths."""
    if event.is_directory:
        return []
    if event.event_type == EVENT_TYPE_CREATED:
        candidates = [(event.src_path, ChangeKind.CREATED)]
    elif event.event_type == EVENT_TYPE_MODIFIED:
        candidates = [(event.src_path, ChangeKind.MODIFIED)]
    elif event.event_type == EVENT_TYPE_DELETED:
        candidates = [(event.src_path, ChangeKind.REMOVED)]
    elif event.event_type == EVENT_TYPE_MOVED:
        # A rename touches both names.
        candidates = [(event.src_path, ChangeKind.MODIFIED), (event.dest_path, ChangeKind.MODIFIED)]
    else:
        return []

    changes = []
    for raw_path, kind in candidates:
        path = os.fsdecode(raw_path)
        if Path(path).suffix == LOG_SUFFIX:
            changes.append(ChangeEvent(path=path, kind=kind))
    return changes


class _QueueHandler(FileSystemEventHandler):
    def __init__(self, events: queue.Queue) -> None:
        super().__init__()
        self._events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in _WATCHED_TYPES:
            self._events.put(event)


class FileMonitor:
    """Watches every root recursively and reports usage-log changes to ``sink``.

    ``start()`` returns the monitor; keep it and call ``stop()`` to end
    monitoring. With no roots to watch the monitor stays dormant.
    """

    def __init__(
        self,
        sink: Callable[[ChangeEvent], None],
        roots: Iterable[Path] | None = None,
        interval: float = PACING_INTERVAL,
        observer_factory: Callable[[], object] = Observer,
    ) -> None:
        self._sink = sink
        self._roots = list(roots) if roots is not None else None
        self.interval = interval
        self._observer_factory = observer_factory
        self._events: queue.Queue = queue.Queue(maxsize=QUEUE_SIZE)
        self.handler = _QueueHandler(self._events)
        self._observer = None
        self._thread: threading.Thread | None = None
        self.watched: list[Path] = []

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "FileMonitor":
        if self.active:
            return self
        roots = self._roots if self._roots is not None else discover_roots()
        roots = [root for root in roots if root.exists()]
        if not roots:
            log.info("No Claude directories found for monitoring")
            return self

        observer = self._observer_factory()
        try:
            for root in roots:
                observer.schedule(self.handler, str(root), recursive=True)
                log.info("Watching directory: %s", root)
            observer.start()
        except OSError as e:
            try:
                observer.stop()
            except Exception:
                log.debug("Observer teardown failed", exc_info=True)
            raise MonitorError(f"Failed to watch Claude directories: {e}") from e

        self._observer = observer
        self.watched = roots
        self._thread = threading.Thread(target=self._run, name="claude-deck-monitor", daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: float | None = 2.0) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout)
            self._observer = None
        if self._thread is not None:
            self._events.put(_STOP)
            self._thread.join(timeout)
            if self._thread.is_alive():
                log.warning("Monitor thread still draining after %ss", timeout)
            else:
                self._thread = None

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
            if not self._thread.is_alive():
                self._thread = None

    def __enter__(self) -> "FileMonitor":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def _run(self) -> None:
        while True:
            event = self._events.get()
            if event is _STOP:
                break
            for change in classify(event):
                try:
                    self._sink(change)
                except Exception:
                    log.exception("Change handler failed for %s", change.path)
            time.sleep(self.interval)
        log.debug("Monitor loop stopped")
