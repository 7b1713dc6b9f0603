from __future__ import annotations

import sys
from pathlib import Path

import pytest

from claude_deck import startup

pytestmark = pytest.mark.skipif(sys.platform != "linux", reason="XDG autostart entry")


def test_enable_writes_autostart_entry(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))

    assert not startup.is_startup_enabled()
    startup.set_startup(True)

    entry = tmp_path / "xdg" / "autostart" / startup.DESKTOP_FILE
    assert startup.is_startup_enabled()
    text = entry.read_text(encoding="utf-8")
    assert "Exec=" in text
    assert "--startup" in text


def test_disable_removes_entry_and_tolerates_absence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))

    startup.set_startup(False)
    startup.set_startup(True)
    startup.set_startup(False)

    assert not startup.is_startup_enabled()
