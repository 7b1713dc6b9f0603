"""Operations offered to the presentation layer.

Failures are raised as ``CommandError`` with a message fit for display.
"""

import logging
from pathlib import Path
from typing import Callable

from claude_deck import scanner, tray
from claude_deck.config import Settings, SettingsStore
from claude_deck.errors import CommandError, SettingsSaveError
from claude_deck.paths import discover_roots, settings_path

log = logging.getLogger(__name__)

MIN_REFRESH_INTERVAL = 30  # seconds
MAX_REFRESH_INTERVAL = 2**32 - 1


def default_store() -> SettingsStore:
    return SettingsStore(settings_path())


def usage_roots(settings: Settings) -> list[Path]:
    """Discovered roots followed by the user's existing custom directories."""
    roots = discover_roots()
    for entry in settings.custom_data_directories:
        entry = entry.strip()
        if not entry:
            continue
        path = Path(entry)
        if path.exists() and path not in roots:
            roots.append(path)
    return roots


def load_usage_entries(since_date: str | None = None, store: SettingsStore | None = None) -> list[str]:
    store = store or default_store()
    roots = usage_roots(store.load())
    log.info("Loading usage entries from %d directories", len(roots))
    entries = scanner.load_all(roots, since=since_date)
    log.info("Loaded %d usage files", len(entries))
    return entries


def export_data(
    fmt: str,
    content: str,
    default_filename: str,
    ask_path: Callable[[str], Path | str | None],
) -> Path | None:
    """Ask for a destination and write ``content`` there verbatim.

    Returns the written path, or None when the user cancels.
    """
    chosen = ask_path(default_filename)
    if not chosen:
        log.info("Export cancelled")
        return None
    path = Path(chosen)
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise CommandError(f"Failed to save file: {e}") from e
    log.info("Exported %s data to %s", fmt, path)
    return path


def get_settings(store: SettingsStore | None = None) -> Settings:
    return (store or default_store()).load()


def parse_refresh_interval(text: str) -> int:
    """Seconds from the settings form, raised to MIN_REFRESH_INTERVAL."""
    try:
        seconds = int(text.strip())
    except ValueError:
        raise CommandError(f"Refresh interval must be a whole number of seconds, got {text!r}") from None
    if seconds > MAX_REFRESH_INTERVAL:
        raise CommandError(f"Refresh interval must be at most {MAX_REFRESH_INTERVAL} seconds")
    return max(MIN_REFRESH_INTERVAL, seconds)


def save_settings(settings: Settings, store: SettingsStore | None = None) -> None:
    try:
        (store or default_store()).save(settings)
    except SettingsSaveError as e:
        raise CommandError(str(e)) from e


def _tray(ctx: tray.AppContext) -> tray.TrayHandle:
    handle = ctx.get_tray(tray.TRAY_ID)
    if handle is None:
        raise CommandError(f"Tray icon {tray.TRAY_ID!r} not found")
    return handle


def update_tray_title(ctx: tray.AppContext, title: str) -> None:
    _tray(ctx).set_title(title)


def set_tray_tooltip(ctx: tray.AppContext, tooltip: str) -> None:
    _tray(ctx).set_tooltip(tooltip)


def show_popup_window(ctx: tray.AppContext) -> None:
    tray.open_popup(ctx)


def hide_popup_window(ctx: tray.AppContext) -> None:
    popup = ctx.get_window(tray.POPUP_WINDOW)
    if popup is not None:
        popup.hide()


def get_popup_position(ctx: tray.AppContext) -> tuple[float, float]:
    return tray.popup_position(ctx.primary_monitor())


def show_main_window(ctx: tray.AppContext) -> None:
    window = ctx.get_window(tray.MAIN_WINDOW)
    if window is None:
        raise CommandError("Main window not found")
    tray.show_and_focus(window)
