"""Exception types raised by ClaudeDeck."""


class ClaudeDeckError(Exception):
    """Base class for all ClaudeDeck errors."""


class SettingsSaveError(ClaudeDeckError):
    """The settings file could not be written."""


class MonitorError(ClaudeDeckError):
    """File monitoring could not be set up."""


class CommandError(ClaudeDeckError):
    """A user-facing command failed; the message is shown as-is."""
