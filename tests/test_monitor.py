from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest
from watchdog.events import (
    DirCreatedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)
from watchdog.observers.polling import PollingObserver

from claude_deck.errors import MonitorError
from claude_deck.monitor import PACING_INTERVAL, ChangeEvent, ChangeKind, FileMonitor, classify


class FakeObserver:
    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.scheduled: list[tuple[str, bool]] = []
        self.started = False
        self.stopped = False

    def schedule(self, handler, path: str, recursive: bool = False) -> None:
        if self.fail_on == "schedule":
            raise PermissionError(13, "Permission denied", path)
        self.scheduled.append((path, recursive))

    def start(self) -> None:
        if self.fail_on == "start":
            raise OSError("inotify watch limit reached")
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout: float | None = None) -> None:
        pass


class Collector:
    def __init__(self) -> None:
        self.events: list[ChangeEvent] = []
        self._lock = threading.Lock()

    def __call__(self, event: ChangeEvent) -> None:
        with self._lock:
            self.events.append(event)

    def wait_for(self, count: int, timeout: float = 5.0) -> list[ChangeEvent]:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            with self._lock:
                if len(self.events) >= count:
                    return list(self.events)
            time.sleep(0.01)
        with self._lock:
            return list(self.events)


@pytest.fixture
def root(tmp_path: Path) -> Path:
    path = tmp_path / "claude"
    path.mkdir()
    return path


def test_classify_maps_event_kinds() -> None:
    assert classify(FileCreatedEvent("/x/a.jsonl")) == [ChangeEvent("/x/a.jsonl", ChangeKind.CREATED)]
    assert classify(FileModifiedEvent("/x/a.jsonl")) == [ChangeEvent("/x/a.jsonl", ChangeKind.MODIFIED)]
    assert classify(FileDeletedEvent("/x/a.jsonl")) == [ChangeEvent("/x/a.jsonl", ChangeKind.REMOVED)]


def test_classify_rename_reports_both_names() -> None:
    assert classify(FileMovedEvent("/x/a.jsonl", "/x/b.jsonl")) == [
        ChangeEvent("/x/a.jsonl", ChangeKind.MODIFIED),
        ChangeEvent("/x/b.jsonl", ChangeKind.MODIFIED),
    ]
    assert classify(FileMovedEvent("/x/a.jsonl.tmp", "/x/a.jsonl")) == [
        ChangeEvent("/x/a.jsonl", ChangeKind.MODIFIED)
    ]


def test_classify_drops_other_files_and_events() -> None:
    assert classify(FileModifiedEvent("/x/a.txt")) == []
    assert classify(FileModifiedEvent("/x/a.jsonl.bak")) == []
    assert classify(DirCreatedEvent("/x/dir.jsonl")) == []
    assert classify(FileClosedEvent("/x/a.jsonl")) == []


def test_one_event_per_matching_notification(root: Path) -> None:
    sink = Collector()
    observer = FakeObserver()
    monitor = FileMonitor(sink, roots=[root], interval=0, observer_factory=lambda: observer)

    with monitor:
        assert monitor.active
        assert observer.scheduled == [(str(root), True)]
        monitor.handler.dispatch(FileModifiedEvent(str(root / "notes.txt")))
        monitor.handler.dispatch(FileCreatedEvent(str(root / "p" / "s.jsonl")))
        monitor.handler.dispatch(FileModifiedEvent(str(root / "p" / "s.jsonl")))
        events = sink.wait_for(2)

    assert events == [
        ChangeEvent(str(root / "p" / "s.jsonl"), ChangeKind.CREATED),
        ChangeEvent(str(root / "p" / "s.jsonl"), ChangeKind.MODIFIED),
    ]
    assert observer.stopped
    assert not monitor.active


def test_repeated_notifications_are_not_coalesced(root: Path) -> None:
    sink = Collector()
    monitor = FileMonitor(sink, roots=[root], interval=0.01, observer_factory=FakeObserver).start()
    try:
        for _ in range(5):
            monitor.handler.dispatch(FileModifiedEvent(str(root / "s.jsonl")))
        events = sink.wait_for(5)
    finally:
        monitor.stop()

    assert len(events) == 5


def test_default_pacing_is_a_tenth_of_a_second() -> None:
    assert PACING_INTERVAL == 0.1
    assert FileMonitor(Collector()).interval == PACING_INTERVAL


def test_deliveries_are_paced_by_interval(root: Path) -> None:
    sink = Collector()
    monitor = FileMonitor(sink, roots=[root], interval=0.05, observer_factory=FakeObserver).start()
    try:
        started = time.monotonic()
        for name in ("a", "b", "c", "d", "e"):
            monitor.handler.dispatch(FileModifiedEvent(str(root / f"{name}.jsonl")))
        events = sink.wait_for(5)
        elapsed = time.monotonic() - started
    finally:
        monitor.stop()

    assert len(events) == 5
    # Four pauses separate five deliveries.
    assert elapsed >= 4 * 0.05 - 0.01


def test_stop_keeps_handle_while_sink_is_busy(root: Path) -> None:
    release = threading.Event()
    entered = threading.Event()

    def sink(event: ChangeEvent) -> None:
        entered.set()
        release.wait(5)

    monitor = FileMonitor(sink, roots=[root], interval=0, observer_factory=FakeObserver).start()
    monitor.handler.dispatch(FileCreatedEvent(str(root / "a.jsonl")))
    assert entered.wait(5)

    monitor.stop(timeout=0.05)
    assert monitor.active

    release.set()
    monitor.join(5)
    assert not monitor.active


def test_sink_errors_do_not_stop_the_loop(root: Path) -> None:
    seen: list[ChangeEvent] = []

    def sink(event: ChangeEvent) -> None:
        seen.append(event)
        if len(seen) == 1:
            raise RuntimeError("boom")

    monitor = FileMonitor(sink, roots=[root], interval=0, observer_factory=FakeObserver).start()
    try:
        monitor.handler.dispatch(FileCreatedEvent(str(root / "a.jsonl")))
        monitor.handler.dispatch(FileCreatedEvent(str(root / "b.jsonl")))
        deadline = time.monotonic() + 5
        while len(seen) < 2 and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        monitor.stop()

    assert [e.path for e in seen] == [str(root / "a.jsonl"), str(root / "b.jsonl")]


def test_no_roots_leaves_monitor_dormant() -> None:
    def factory():
        raise AssertionError("observer must not be created")

    monitor = FileMonitor(Collector(), roots=[], observer_factory=factory)

    assert monitor.start() is monitor
    assert not monitor.active
    monitor.stop()


def test_discovers_roots_when_none_given() -> None:
    monitor = FileMonitor(Collector(), observer_factory=FakeObserver).start()

    assert not monitor.active
    assert monitor.watched == []


def test_uses_discovered_roots(monkeypatch: pytest.MonkeyPatch, root: Path) -> None:
    monkeypatch.setenv("CLAUDE_CONFIG_DIR", str(root))
    observer = FakeObserver()

    with FileMonitor(Collector(), observer_factory=lambda: observer) as monitor:
        assert monitor.watched == [root]
        assert observer.scheduled == [(str(root), True)]


@pytest.mark.parametrize("fail_on", ["schedule", "start"])
def test_watch_failure_raises_and_never_starts(root: Path, fail_on: str) -> None:
    observer = FakeObserver(fail_on=fail_on)
    monitor = FileMonitor(Collector(), roots=[root], observer_factory=lambda: observer)

    with pytest.raises(MonitorError):
        monitor.start()

    assert not monitor.active
    assert observer.stopped


def test_real_filesystem_changes_are_reported(root: Path) -> None:
    sink = Collector()
    project = root / "projects" / "demo"
    project.mkdir(parents=True)

    with FileMonitor(sink, roots=[root], observer_factory=lambda: PollingObserver(timeout=0.1)):
        time.sleep(0.3)
        (project / "ignored.txt").write_text("x\n", encoding="utf-8")
        (project / "session.jsonl").write_text('{"a": 1}\n', encoding="utf-8")
        sink.wait_for(1)
        time.sleep(0.3)
        events = list(sink.events)

    assert ChangeEvent(str(project / "session.jsonl"), ChangeKind.CREATED) in events
    assert all(event.path.endswith(".jsonl") for event in events)
