"""Tray icon click handling.

The controller never holds window or tray objects itself: every click goes
through an ``AppContext`` that can look windows and trays up by name, build
a window, and report the primary monitor.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from claude_deck.config import Settings

log = logging.getLogger(__name__)

MAIN_WINDOW = "main"
POPUP_WINDOW = "popup"
TRAY_ID = "main"

POPUP_WIDTH = 300.0
POPUP_HEIGHT = 400.0
POPUP_PADDING = 20.0
FALLBACK_POSITION = (100.0, 100.0)


class ClickAction(str, Enum):
    OPEN_APP = "open_app"
    SHOW_POPUP = "show_popup"
    TOGGLE_WINDOW = "toggle_window"
    NONE = "none"

    @classmethod
    def parse(cls, value: str) -> "ClickAction":
        """Unknown values fall back to OPEN_APP."""
        try:
            return cls(value)
        except ValueError:
            log.debug("Unknown tray click action %r, opening app", value)
            return cls.OPEN_APP


@dataclass(frozen=True)
class Monitor:
    width: int  # physical pixels
    height: int
    scale_factor: float = 1.0


@dataclass(frozen=True)
class WindowOptions:
    title: str
    x: float
    y: float
    width: float
    height: float
    resizable: bool = True
    decorations: bool = True
    always_on_top: bool = False
    skip_taskbar: bool = False


class Window(Protocol):
    def show(self) -> None: ...

    def hide(self) -> None: ...

    def set_focus(self) -> None: ...

    def is_visible(self) -> bool: ...


class TrayHandle(Protocol):
    def set_title(self, title: str) -> None: ...

    def set_tooltip(self, tooltip: str) -> None: ...


class AppContext(Protocol):
    def get_window(self, label: str) -> Window | None: ...

    def build_window(self, label: str, options: WindowOptions) -> Window: ...

    def primary_monitor(self) -> Monitor | None: ...

    def get_tray(self, tray_id: str) -> TrayHandle | None: ...


def popup_position(monitor: Monitor | None) -> tuple[float, float]:
    """Bottom-right corner of the monitor, in logical pixels."""
    if monitor is None:
        return FALLBACK_POSITION
    x = monitor.width / monitor.scale_factor - POPUP_WIDTH - POPUP_PADDING
    y = monitor.height / monitor.scale_factor - POPUP_HEIGHT - POPUP_PADDING
    return (x, y)


def popup_options(monitor: Monitor | None) -> WindowOptions:
    x, y = popup_position(monitor)
    return WindowOptions(
        title="ClaudeDeck Quick View",
        x=x,
        y=y,
        width=POPUP_WIDTH,
        height=POPUP_HEIGHT,
        resizable=False,
        decorations=True,
        always_on_top=True,
        skip_taskbar=True,
    )


def show_and_focus(window: Window) -> None:
    window.show()
    window.set_focus()


def open_popup(ctx: AppContext) -> Window:
    """Show the popup, creating it in the screen corner if needed."""
    popup = ctx.get_window(POPUP_WINDOW)
    if popup is None:
        return ctx.build_window(POPUP_WINDOW, popup_options(ctx.primary_monitor()))
    show_and_focus(popup)
    return popup


def toggle_main_window(ctx: AppContext) -> None:
    window = ctx.get_window(MAIN_WINDOW)
    if window is None:
        return
    if window.is_visible():
        window.hide()
    else:
        show_and_focus(window)


class TrayController:
    def __init__(self, ctx: AppContext, load_settings: Callable[[], Settings]) -> None:
        self._ctx = ctx
        self._load_settings = load_settings

    def current_action(self) -> ClickAction:
        try:
            settings = self._load_settings()
        except Exception:
            log.exception("Could not load settings for tray click")
            return ClickAction.OPEN_APP
        return ClickAction.parse(settings.click_action)

    def handle_click(self) -> ClickAction:
        action = self.current_action()
        try:
            if action is ClickAction.SHOW_POPUP:
                open_popup(self._ctx)
            elif action is ClickAction.TOGGLE_WINDOW:
                toggle_main_window(self._ctx)
            elif action is ClickAction.OPEN_APP:
                window = self._ctx.get_window(MAIN_WINDOW)
                if window is not None:
                    show_and_focus(window)
        except Exception:
            log.exception("Tray click action %s failed", action.value)
        return action
