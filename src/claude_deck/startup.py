"""Launch-at-login registration.

Windows uses the per-user ``Run`` registry key, macOS a LaunchAgent plist
and other platforms an XDG autostart desktop entry.
"""

import logging
import os
import plistlib
import shlex
import sys
from pathlib import Path

if sys.platform == "win32":
    import winreg

log = logging.getLogger(__name__)

APP_NAME = "ClaudeDeck"
EXE_NAME = "ClaudeDeck.exe"
REG_KEY = r"SOFTWARE\Microsoft\Windows\CurrentVersion\Run"
LAUNCH_AGENT_LABEL = "com.claudedeck.app"
DESKTOP_FILE = "claude-deck.desktop"


def _find_installed_exe() -> str | None:
    """Search for the installed or built Windows exe."""
    candidates = [
        Path(os.environ.get("LOCALAPPDATA", "")) / "Programs" / APP_NAME / EXE_NAME,
        Path(os.environ.get("PROGRAMFILES", "")) / APP_NAME / EXE_NAME,
    ]
    for path in candidates:
        if path.is_file():
            return str(path)
    return None


def launch_command() -> list[str]:
    """Command line that starts ClaudeDeck in auto-start mode."""
    if getattr(sys, "frozen", False):
        return [sys.executable, "--startup"]
    if sys.platform == "win32":
        found = _find_installed_exe()
        if found:
            return [found, "--startup"]
    return [sys.executable, "-m", "claude_deck", "--startup"]


def launch_agent_path() -> Path:
    return Path.home() / "Library" / "LaunchAgents" / f"{LAUNCH_AGENT_LABEL}.plist"


def autostart_path() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "autostart" / DESKTOP_FILE


# ── Windows ──────────────────────────────────────────────────────


def _registry_enabled() -> bool:
    try:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, REG_KEY, 0, winreg.KEY_READ) as key:
            winreg.QueryValueEx(key, APP_NAME)
            return True
    except OSError:
        return False


def _registry_set(enabled: bool) -> None:
    with winreg.OpenKey(winreg.HKEY_CURRENT_USER, REG_KEY, 0, winreg.KEY_SET_VALUE) as key:
        if enabled:
            command = " ".join(f'"{part}"' if " " in part else part for part in launch_command())
            winreg.SetValueEx(key, APP_NAME, 0, winreg.REG_SZ, command)
        else:
            try:
                winreg.DeleteValue(key, APP_NAME)
            except FileNotFoundError:
                pass


# ── macOS / XDG ──────────────────────────────────────────────────


def _write_launch_agent(path: Path) -> None:
    agent = {
        "Label": LAUNCH_AGENT_LABEL,
        "ProgramArguments": launch_command(),
        "RunAtLoad": True,
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as fh:
        plistlib.dump(agent, fh)


def _write_desktop_entry(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        "[Desktop Entry]\n"
        "Type=Application\n"
        f"Name={APP_NAME}\n"
        f"Exec={shlex.join(launch_command())}\n"
        "X-GNOME-Autostart-enabled=true\n",
        encoding="utf-8",
    )


def _entry_path() -> Path:
    return launch_agent_path() if sys.platform == "darwin" else autostart_path()


def is_startup_enabled() -> bool:
    if sys.platform == "win32":
        return _registry_enabled()
    return _entry_path().is_file()


def set_startup(enabled: bool) -> None:
    """Register or remove ClaudeDeck from the login items; errors are logged."""
    try:
        if sys.platform == "win32":
            _registry_set(enabled)
        elif enabled:
            path = _entry_path()
            if sys.platform == "darwin":
                _write_launch_agent(path)
            else:
                _write_desktop_entry(path)
        else:
            _entry_path().unlink(missing_ok=True)
    except OSError as e:
        log.error("Failed to %s startup: %s", "enable" if enabled else "disable", e)
        return
    log.info("Startup %s", "enabled" if enabled else "disabled")
