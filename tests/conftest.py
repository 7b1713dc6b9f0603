from __future__ import annotations

from pathlib import Path

import pytest

from claude_deck.tray import Monitor, WindowOptions


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the home directory at an empty tree and clear CLAUDE_CONFIG_DIR."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.delenv("CLAUDE_CONFIG_DIR", raising=False)
    return home


class FakeWindow:
    def __init__(self, visible: bool = True) -> None:
        self.visible = visible
        self.focused = False
        self.calls: list[str] = []

    def show(self) -> None:
        self.calls.append("show")
        self.visible = True

    def hide(self) -> None:
        self.calls.append("hide")
        self.visible = False
        self.focused = False

    def set_focus(self) -> None:
        self.calls.append("set_focus")
        self.focused = True

    def is_visible(self) -> bool:
        return self.visible


class FakeTray:
    def __init__(self) -> None:
        self.title: str | None = None
        self.tooltip: str | None = None

    def set_title(self, title: str) -> None:
        self.title = title

    def set_tooltip(self, tooltip: str) -> None:
        self.tooltip = tooltip


class FakeContext:
    def __init__(self, monitor: Monitor | None = None) -> None:
        self.windows: dict[str, FakeWindow] = {}
        self.trays: dict[str, FakeTray] = {}
        self.monitor = monitor
        self.built: list[tuple[str, WindowOptions]] = []

    def get_window(self, label: str) -> FakeWindow | None:
        return self.windows.get(label)

    def build_window(self, label: str, options: WindowOptions) -> FakeWindow:
        self.built.append((label, options))
        window = FakeWindow(visible=True)
        self.windows[label] = window
        return window

    def primary_monitor(self) -> Monitor | None:
        return self.monitor

    def get_tray(self, tray_id: str) -> FakeTray | None:
        return self.trays.get(tray_id)


@pytest.fixture
def ctx() -> FakeContext:
    return FakeContext()


@pytest.fixture
def make_window():
    return FakeWindow


@pytest.fixture
def make_tray():
    return FakeTray
