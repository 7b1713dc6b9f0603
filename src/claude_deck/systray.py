"""System tray icon backed by pystray."""

import logging
import threading
from typing import TYPE_CHECKING

import pystray

from claude_deck.icon import render_icon
from claude_deck.tray import TRAY_ID, TrayController

if TYPE_CHECKING:
    from claude_deck.widget import DeckApp

log = logging.getLogger(__name__)


class TrayManager:
    """Owns the pystray icon; clicks are handed to the Tk thread."""

    def __init__(self, app: "DeckApp", controller: TrayController) -> None:
        self._app = app
        self._controller = controller
        self._icon: pystray.Icon | None = None
        self._thread: threading.Thread | None = None
        self._title = ""
        self._style = "default"

    def start(self) -> None:
        settings = self._app.store.load()
        if settings.system_tray is not None:
            self._style = settings.system_tray.visual.icon_style
        menu = pystray.Menu(
            pystray.MenuItem("Click", self._on_click, default=True, visible=False),
            pystray.MenuItem("Open ClaudeDeck", self._on_show),
            pystray.MenuItem("Refresh", self._on_refresh),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Quit", self._on_quit),
        )
        self._icon = pystray.Icon(
            TRAY_ID,
            icon=render_icon(self._style),
            title="ClaudeDeck",
            menu=menu,
        )
        self._thread = threading.Thread(target=self._icon.run, name="claude-deck-tray", daemon=True)
        self._thread.start()

    def set_title(self, title: str) -> None:
        self._title = title
        if self._icon:
            self._icon.icon = render_icon(self._style, text=title)

    def set_tooltip(self, tooltip: str) -> None:
        if self._icon:
            self._icon.title = tooltip

    def set_style(self, style: str) -> None:
        self._style = style
        self.set_title(self._title)

    def stop(self) -> None:
        if self._icon:
            self._icon.stop()

    def _on_click(self, icon: pystray.Icon, item: pystray.MenuItem) -> None:
        self._app.root.after(0, self._controller.handle_click)

    def _on_show(self, icon: pystray.Icon, item: pystray.MenuItem) -> None:
        self._app.root.after(0, self._app.show_main)

    def _on_refresh(self, icon: pystray.Icon, item: pystray.MenuItem) -> None:
        self._app.root.after(0, self._app.refresh)

    def _on_quit(self, icon: pystray.Icon, item: pystray.MenuItem) -> None:
        self._app.root.after(0, self._app.quit_app)
