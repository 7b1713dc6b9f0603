"""Locations of Claude data directories and ClaudeDeck's own files."""

import logging
import os
from pathlib import Path

from platformdirs import PlatformDirs

log = logging.getLogger(__name__)

APP_NAME = "ClaudeDeck"
CONFIG_DIR_ENV = "CLAUDE_CONFIG_DIR"
LOG_SUFFIX = ".jsonl"
PROJECTS_DIR = "projects"
SETTINGS_FILE = "settings.json"
LOG_FILE = "claude-deck.log"


def default_roots() -> list[Path]:
    home = Path.home()
    return [home / ".config" / "claude", home / ".claude"]


def discover_roots() -> list[Path]:
    """Return the directories that may hold Claude usage logs.

    Entries from ``CLAUDE_CONFIG_DIR`` (comma-separated) come first, in the
    order given, followed by the default per-user locations. Only existing
    paths are returned, and a default is skipped if it is textually equal to
    one already listed.
    """
    roots: list[Path] = []

    for entry in os.environ.get(CONFIG_DIR_ENV, "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        path = Path(entry)
        if path.exists():
            roots.append(path)
        else:
            log.debug("Ignoring missing %s entry: %s", CONFIG_DIR_ENV, path)

    for path in default_roots():
        if path.exists() and path not in roots:
            roots.append(path)

    return roots


def _dirs() -> PlatformDirs:
    return PlatformDirs(appname=APP_NAME, appauthor=False, roaming=True)


def settings_path() -> Path:
    return Path(_dirs().user_data_path) / SETTINGS_FILE


def log_path() -> Path:
    return Path(_dirs().user_log_path) / LOG_FILE
