"""customtkinter windows: main view, quick-view popup and settings dialog.

``DeckApp`` owns the Tk root (the ``main`` window) and implements the
``AppContext`` the tray controller and commands work through.
"""

import logging
import sys
import tkinter as tk
from datetime import datetime
from tkinter import filedialog, messagebox
from typing import TYPE_CHECKING

import customtkinter as ctk

from claude_deck import commands
from claude_deck.config import SettingsStore, migrate_settings
from claude_deck.errors import CommandError
from claude_deck.icon import ICON_STYLES
from claude_deck.monitor import ChangeEvent
from claude_deck.startup import is_startup_enabled, set_startup
from claude_deck.tray import (
    MAIN_WINDOW,
    POPUP_WINDOW,
    TRAY_ID,
    ClickAction,
    Monitor,
    TrayHandle,
    WindowOptions,
)

if TYPE_CHECKING:
    from claude_deck.systray import TrayManager

log = logging.getLogger(__name__)

# Colors
POPUP_BG = "#1e1e2e"
COLOR_FG = "#e0e0e0"
COLOR_LABEL = "#888888"
COLOR_GREEN = "#22c55e"
COLOR_BAR_BG = "#333333"


class TkWindow:
    """Adapts a Tk toplevel to the ``Window`` protocol."""

    def __init__(self, win: tk.Wm) -> None:
        self.win = win

    def exists(self) -> bool:
        try:
            return bool(self.win.winfo_exists())
        except tk.TclError:
            return False

    def show(self) -> None:
        self.win.deiconify()
        self.win.lift()

    def hide(self) -> None:
        self.win.withdraw()

    def set_focus(self) -> None:
        self.win.focus_force()

    def is_visible(self) -> bool:
        return self.win.state() != "withdrawn" and bool(self.win.winfo_viewable())


class DeckApp:
    def __init__(self, store: SettingsStore) -> None:
        self.store = store
        self.tray: "TrayManager | None" = None
        self.on_quit = None
        self._refresh_job: str | None = None
        self._windows: dict[str, TkWindow] = {}
        self._summary = {"roots": 0, "files": 0, "entries": 0, "changed": "never"}
        self._labels: dict[str, list[ctk.CTkLabel]] = {key: [] for key in self._summary}
        self._last_entries: list[str] = []

        settings = store.load()
        ctk.set_appearance_mode(settings.theme)
        ctk.set_default_color_theme("dark-blue")

        self.root = ctk.CTk()
        self.root.title("ClaudeDeck")
        self.root.geometry("420x260")
        self.root.protocol("WM_DELETE_WINDOW", self.hide_to_tray)
        self._windows[MAIN_WINDOW] = TkWindow(self.root)
        self._build_main(self.root)

        if settings.system_tray is not None and settings.system_tray.behavior.start_minimized:
            self.root.withdraw()

    def _get_dpi_scale(self) -> float:
        try:
            return ctk.ScalingTracker.get_window_scaling(self.root)
        except Exception:
            return 1.0

    # ── AppContext ───────────────────────────────────────────────

    def get_window(self, label: str) -> TkWindow | None:
        window = self._windows.get(label)
        if window is None or not window.exists():
            self._windows.pop(label, None)
            return None
        return window

    def build_window(self, label: str, options: WindowOptions) -> TkWindow:
        win = ctk.CTkToplevel(self.root)
        win.title(options.title)
        win.geometry(f"{int(options.width)}x{int(options.height)}+{int(options.x)}+{int(options.y)}")
        win.resizable(options.resizable, options.resizable)
        win.attributes("-topmost", options.always_on_top)
        if not options.decorations:
            win.overrideredirect(True)
        if options.skip_taskbar:
            if sys.platform == "win32":
                win.attributes("-toolwindow", True)
            else:
                try:
                    win.attributes("-type", "utility")
                except tk.TclError:
                    log.debug("Window manager does not support utility windows")
        win.configure(fg_color=POPUP_BG)

        if label == POPUP_WINDOW:
            self._build_popup(win)

        window = TkWindow(win)
        self._windows[label] = window
        win.after(100, win.focus_force)
        return window

    def primary_monitor(self) -> Monitor | None:
        try:
            scale = self._get_dpi_scale()
            return Monitor(
                width=int(self.root.winfo_screenwidth() * scale),
                height=int(self.root.winfo_screenheight() * scale),
                scale_factor=scale,
            )
        except tk.TclError:
            return None

    def get_tray(self, tray_id: str) -> TrayHandle | None:
        if tray_id == TRAY_ID:
            return self.tray
        return None

    # ── Layout ───────────────────────────────────────────────────

    def _build_summary(self, parent: ctk.CTkFrame) -> None:
        rows = [
            ("roots", "Data directories"),
            ("files", "Log files"),
            ("entries", "Entries"),
            ("changed", "Last change"),
        ]
        for key, title in rows:
            row = ctk.CTkFrame(parent, fg_color="transparent")
            row.pack(fill="x", padx=14, pady=(0, 4))
            ctk.CTkLabel(row, text=title, font=ctk.CTkFont(size=11),
                         text_color=COLOR_LABEL).pack(side="left")
            value = ctk.CTkLabel(row, text=str(self._summary[key]),
                                 font=ctk.CTkFont(size=12, weight="bold"),
                                 text_color=COLOR_FG)
            value.pack(side="right")
            self._labels[key].append(value)

    def _build_main(self, root: ctk.CTk) -> None:
        frame = ctk.CTkFrame(root, corner_radius=10)
        frame.pack(fill="both", expand=True, padx=8, pady=8)

        ctk.CTkLabel(frame, text="Claude Code Usage Logs",
                     font=ctk.CTkFont(size=14, weight="bold")).pack(anchor="w", padx=14, pady=(12, 8))
        self._build_summary(frame)

        btn_frame = ctk.CTkFrame(frame, fg_color="transparent")
        btn_frame.pack(fill="x", padx=14, pady=(10, 12))
        ctk.CTkButton(btn_frame, text="Refresh", width=80, command=self.refresh).pack(side="left")
        ctk.CTkButton(btn_frame, text="Export", width=80, command=self.export).pack(side="left", padx=6)
        ctk.CTkButton(btn_frame, text="Settings", width=80,
                      command=self.open_settings).pack(side="left")
        ctk.CTkButton(btn_frame, text="Quit", width=60, command=self.quit_app,
                      fg_color="#442222", hover_color="#553333").pack(side="right")

    def _build_popup(self, popup: ctk.CTkToplevel) -> None:
        frame = ctk.CTkFrame(popup, fg_color=POPUP_BG)
        frame.pack(fill="both", expand=True)
        ctk.CTkLabel(frame, text="ClaudeDeck", font=ctk.CTkFont(size=14, weight="bold"),
                     text_color=COLOR_FG).pack(anchor="w", padx=14, pady=(12, 8))
        self._build_summary(frame)

        btn_frame = ctk.CTkFrame(frame, fg_color="transparent")
        btn_frame.pack(fill="x", padx=14, pady=(10, 12))
        ctk.CTkButton(btn_frame, text="Open", width=70, height=28,
                      command=self.show_main).pack(side="left")
        ctk.CTkButton(btn_frame, text="Close", width=70, height=28, fg_color="#333344",
                      command=popup.withdraw).pack(side="right")

    def _update_summary(self, **values) -> None:
        self._summary.update(values)
        for key, labels in self._labels.items():
            alive = [label for label in labels if label.winfo_exists()]
            for label in alive:
                label.configure(text=str(self._summary[key]))
            self._labels[key] = alive

    # ── Public API ───────────────────────────────────────────────

    def set_tray(self, tray: "TrayManager") -> None:
        self.tray = tray

    def refresh(self) -> None:
        log.info("Refreshing usage data...")
        settings = self.store.load()
        entries = commands.load_usage_entries(store=self.store)
        self._last_entries = entries
        count = sum(1 for text in entries for line in text.splitlines() if line.strip())
        self._update_summary(
            roots=len(commands.usage_roots(settings)),
            files=len(entries),
            entries=count,
        )
        try:
            commands.update_tray_title(self, str(len(entries)))
            commands.set_tray_tooltip(self, f"ClaudeDeck: {len(entries)} files, {count} entries")
        except CommandError as e:
            log.debug("Tray not updated: %s", e)

    def on_file_changed(self, event: ChangeEvent) -> None:
        log.info("Log file %s: %s", event.kind.value, event.path)
        self._update_summary(changed=datetime.now().strftime("%H:%M:%S"))
        if self.store.load().auto_refresh:
            self.refresh()

    def start_polling(self) -> None:
        if self._refresh_job:
            self.root.after_cancel(self._refresh_job)
            self._refresh_job = None
        self.refresh()
        settings = self.store.load()
        if settings.auto_refresh and settings.refresh_interval > 0:
            self._refresh_job = self.root.after(settings.refresh_interval * 1000, self.start_polling)

    def export(self) -> None:
        fmt = self.store.load().default_export_format
        content = "\n".join(text.rstrip("\n") for text in self._last_entries)
        try:
            commands.export_data(fmt, content, "claude-usage.jsonl", self._ask_save_path)
        except CommandError as e:
            log.error("Export failed: %s", e)
            messagebox.showerror("Export failed", str(e), parent=self.root)

    def _ask_save_path(self, default_filename: str) -> str:
        return filedialog.asksaveasfilename(
            parent=self.root,
            initialfile=default_filename,
            defaultextension=".jsonl",
        )

    def show_main(self) -> None:
        try:
            commands.show_main_window(self)
        except CommandError as e:
            log.error("%s", e)

    def hide_to_tray(self) -> None:
        if self.tray is None:
            self.quit_app()
            return
        self.root.withdraw()

    def open_settings(self) -> None:
        SettingsDialog(self)

    def quit_app(self) -> None:
        if self._refresh_job:
            self.root.after_cancel(self._refresh_job)
        if self.on_quit:
            self.on_quit()
        if self.tray:
            self.tray.stop()
        self.root.destroy()

    def run(self) -> None:
        self.root.mainloop()


class SettingsDialog:
    def __init__(self, app: DeckApp) -> None:
        self._app = app
        self._settings = migrate_settings(app.store.load())

        self._win = ctk.CTkToplevel(app.root)
        self._win.title("ClaudeDeck Settings")
        self._win.geometry("340x340")
        self._win.resizable(False, False)
        self._win.attributes("-topmost", True)
        self._win.configure(fg_color=POPUP_BG)
        self._win.grab_set()

        self._build()

    def _build(self) -> None:
        pad = {"padx": 16, "pady": (8, 0)}
        tray_settings = self._settings.system_tray

        ctk.CTkLabel(self._win, text="Refresh interval (seconds):",
                     text_color=COLOR_FG).pack(anchor="w", **pad)
        self._interval_var = tk.StringVar(value=str(self._settings.refresh_interval))
        ctk.CTkEntry(self._win, textvariable=self._interval_var, width=100,
                     fg_color=COLOR_BAR_BG, text_color=COLOR_FG).pack(anchor="w", padx=16, pady=4)

        self._auto_var = tk.BooleanVar(value=self._settings.auto_refresh)
        ctk.CTkCheckBox(self._win, text="Auto refresh", variable=self._auto_var,
                        text_color=COLOR_FG, fg_color=COLOR_GREEN).pack(anchor="w", **pad)

        ctk.CTkLabel(self._win, text="Tray click:", text_color=COLOR_FG).pack(anchor="w", **pad)
        self._click_var = tk.StringVar(value=tray_settings.behavior.click_action)
        ctk.CTkOptionMenu(self._win, variable=self._click_var,
                          values=[action.value for action in ClickAction]).pack(anchor="w", padx=16, pady=4)

        ctk.CTkLabel(self._win, text="Icon style:", text_color=COLOR_FG).pack(anchor="w", **pad)
        self._style_var = tk.StringVar(value=tray_settings.visual.icon_style)
        ctk.CTkOptionMenu(self._win, variable=self._style_var,
                          values=list(ICON_STYLES)).pack(anchor="w", padx=16, pady=4)

        self._boot_var = tk.BooleanVar(value=is_startup_enabled())
        ctk.CTkCheckBox(self._win, text="Launch at startup", variable=self._boot_var,
                        text_color=COLOR_FG, fg_color=COLOR_GREEN,
                        hover_color="#16a34a").pack(anchor="w", **pad)

        btn_frame = ctk.CTkFrame(self._win, fg_color="transparent")
        btn_frame.pack(fill="x", padx=16, pady=16)
        ctk.CTkButton(btn_frame, text="Save", width=80, command=self._save,
                      fg_color=COLOR_GREEN, hover_color="#16a34a",
                      text_color="#000000").pack(side="right", padx=(8, 0))
        ctk.CTkButton(btn_frame, text="Cancel", width=80, command=self._win.destroy,
                      fg_color=COLOR_BAR_BG, hover_color="#45475a").pack(side="right")

    def _save(self) -> None:
        settings = self._settings
        try:
            settings.refresh_interval = commands.parse_refresh_interval(self._interval_var.get())
        except CommandError as e:
            log.warning("Rejected refresh interval: %s", e)
            messagebox.showerror("Settings", str(e), parent=self._win)
            return
        settings.auto_refresh = self._auto_var.get()
        settings.system_tray.behavior.click_action = self._click_var.get()
        settings.system_tray.visual.icon_style = self._style_var.get()
        settings.launch_at_startup = self._boot_var.get()

        try:
            commands.save_settings(settings, self._app.store)
        except CommandError as e:
            log.error("%s", e)
            messagebox.showerror("Settings", str(e), parent=self._win)
            return

        set_startup(settings.launch_at_startup)
        if self._app.tray:
            self._app.tray.set_style(settings.system_tray.visual.icon_style)
        self._app.start_polling()
        self._win.destroy()
