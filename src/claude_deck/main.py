"""Entry point for ClaudeDeck."""

import logging
import sys
import time

from claude_deck.paths import log_path


def _setup_logging() -> None:
    path = log_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(path, encoding="utf-8"),
        ],
    )


def main() -> None:
    _setup_logging()
    log = logging.getLogger(__name__)

    is_autostart = "--startup" in sys.argv

    try:
        if is_autostart:
            log.info("Auto-start mode: waiting for desktop to be ready...")
            time.sleep(5)

        log.info("Starting ClaudeDeck...")

        from claude_deck.commands import default_store
        from claude_deck.errors import MonitorError
        from claude_deck.monitor import FileMonitor
        from claude_deck.startup import is_startup_enabled, set_startup
        from claude_deck.systray import TrayManager
        from claude_deck.tray import TrayController
        from claude_deck.widget import DeckApp

        store = default_store()
        settings = store.load()

        # The login item (Run key, LaunchAgent or autostart entry) can vanish
        # while the setting stays on.
        if settings.launch_at_startup and not is_startup_enabled():
            log.info("Restoring missing launch-at-login entry")
            set_startup(True)

        app = DeckApp(store)
        tray = TrayManager(app, TrayController(app, store.load))
        app.set_tray(tray)

        monitor = FileMonitor(lambda event: app.root.after(0, app.on_file_changed, event))
        try:
            monitor.start()
        except MonitorError as e:
            log.error("%s; continuing without live monitoring", e)
        app.on_quit = monitor.stop

        tray.start()
        app.start_polling()
        app.run()
    except Exception:
        log.exception("Fatal error during startup")
        sys.exit(1)


if __name__ == "__main__":
    main()
