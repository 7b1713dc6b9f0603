"""Recursive discovery and loading of usage-log files."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from claude_deck.paths import LOG_SUFFIX, PROJECTS_DIR

log = logging.getLogger(__name__)


@dataclass
class LogFile:
    path: Path
    content: str


def find_log_files(directory: Path) -> list[Path]:
    """Return every log file below ``directory``, at any depth.

    Directories that cannot be listed are logged and skipped.
    """
    files: list[Path] = []
    if not directory.is_dir():
        return files

    def _on_error(err: OSError) -> None:
        log.warning("Cannot list %s: %s", err.filename, err.strerror)

    for dirpath, dirnames, filenames in os.walk(directory, onerror=_on_error):
        dirnames.sort()
        for name in sorted(filenames):
            if Path(name).suffix == LOG_SUFFIX:
                files.append(Path(dirpath) / name)
    return files


def scan(root: Path) -> list[LogFile]:
    """Read every log file under ``root``; unreadable files are skipped."""
    records = []
    for path in find_log_files(root):
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.warning("Failed to read %s: %s", path, e)
            continue
        records.append(LogFile(path=path, content=content))
    return records


def load_all(roots: Iterable[Path], since: str | None = None) -> list[str]:
    """Return the contents of all log files under each root's projects dir.

    ``since`` is accepted for callers that pass a cut-off date but is not
    applied: every file found is returned.
    """
    roots = list(roots)
    if not roots:
        log.info("No Claude data directories found")
        return []
    if since is not None:
        log.debug("Date filter %r requested; returning all files", since)

    contents: list[str] = []
    for root in roots:
        projects = root / PROJECTS_DIR
        if not projects.is_dir():
            log.debug("No projects directory in %s, skipping", root)
            continue
        records = scan(projects)
        log.info("Loaded %d log files from %s", len(records), projects)
        contents.extend(record.content for record in records)
    return contents
