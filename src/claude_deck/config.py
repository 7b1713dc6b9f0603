"""Settings model and persistence for ClaudeDeck.

Settings are stored as one JSON document, ``{"settings": {...}}``, with
camelCase keys. Loading never fails: a missing, unreadable or malformed
document yields the default ``Settings()``. Saving replaces the whole file
atomically.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Annotated, Any, ClassVar, get_args

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    Strict,
    StrictBool,
    StrictStr,
    ValidationError,
    ValidationInfo,
    model_validator,
)
from pydantic.alias_generators import to_camel

from claude_deck.errors import SettingsSaveError

log = logging.getLogger(__name__)

SETTINGS_KEY = "settings"
STORED = "stored"

U32 = Annotated[int, Strict(), Field(ge=0, le=2**32 - 1)]
Amount = Annotated[float, Strict()]


def _accepts_none(annotation: Any) -> bool:
    return type(None) in get_args(annotation)


class StoredModel(BaseModel):
    """Base for every settings block.

    When validated with the ``stored`` context, every key must be present
    except optional ones (absent means None) and those in ``OMITTABLE``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        allow_inf_nan=False,
    )

    OMITTABLE: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="before")
    @classmethod
    def _require_stored_keys(cls, data: Any, info: ValidationInfo) -> Any:
        if not (info.context and info.context.get(STORED)) or not isinstance(data, dict):
            return data
        data = dict(data)
        for name, f in cls.model_fields.items():
            if f.alias in data or name in cls.OMITTABLE:
                continue
            if _accepts_none(f.annotation):
                data[f.alias] = None
            else:
                raise ValueError(f"missing field {f.alias!r}")
        return data


class NotificationLimits(StoredModel):
    daily: Amount | None = None
    monthly: Amount | None = None
    session: Amount | None = None


class ShowItems(StoredModel):
    current_block_tokens: StrictBool = True
    current_block_cost: StrictBool = True
    current_block_models: StrictBool = False
    current_block_time_remaining: StrictBool = False
    daily_total: StrictBool = True
    session_total: StrictBool = False
    monthly_total: StrictBool = False


class NumberFormat(StoredModel):
    tokens_unit: StrictStr = "k"  # raw | k | M
    cost_decimals: U32 = 2
    compact_numbers: StrictBool = True


class TrayDisplay(StoredModel):
    mode: StrictStr = "compact"  # compact | detailed | custom
    show_items: ShowItems = Field(default_factory=ShowItems)
    custom_format: StrictStr | None = "{tokens} | ${cost} | {models}"
    number_format: NumberFormat = Field(default_factory=NumberFormat)
    update_interval: U32 = 60  # seconds


class TrayBehavior(StoredModel):
    click_action: StrictStr = "open_app"  # open_app | show_popup | toggle_window | none
    right_click_shows_menu: StrictBool = True
    show_only_when_active: StrictBool = False
    inactivity_timeout: U32 = 30  # minutes
    start_minimized: StrictBool = False


class TrayVisual(StoredModel):
    icon_style: StrictStr = "default"  # default | monochrome
    show_tooltip: StrictBool = True
    tooltip_content: StrictStr = "same_as_title"  # same_as_title | detailed_stats | custom
    custom_tooltip_format: StrictStr | None = ""


class TriggerLimit(StoredModel):
    enabled: StrictBool = False
    threshold: Amount = 80.0


class CostMilestone(StoredModel):
    enabled: StrictBool = False
    amount: Amount = 10.0


class NotificationTriggers(StoredModel):
    new_block: StrictBool = False
    daily_limit: TriggerLimit = Field(default_factory=TriggerLimit)
    monthly_limit: TriggerLimit = Field(default_factory=TriggerLimit)
    session_limit: TriggerLimit = Field(default_factory=TriggerLimit)
    cost_milestone: CostMilestone = Field(default_factory=CostMilestone)


class TrayNotifications(StoredModel):
    enabled: StrictBool = False
    triggers: NotificationTriggers = Field(default_factory=NotificationTriggers)
    style: StrictStr = "native"  # native | in_app
    sound: StrictBool = False


class SystemTraySettings(StoredModel):
    enabled: StrictBool = True
    display: TrayDisplay = Field(default_factory=TrayDisplay)
    behavior: TrayBehavior = Field(default_factory=TrayBehavior)
    visual: TrayVisual = Field(default_factory=TrayVisual)
    notifications: TrayNotifications = Field(default_factory=TrayNotifications)


class Settings(StoredModel):
    OMITTABLE: ClassVar[frozenset[str]] = frozenset({"compact_mode"})

    theme: StrictStr = "system"  # light | dark | system
    custom_data_directories: list[StrictStr] = Field(default_factory=list)
    notification_limits: NotificationLimits = Field(default_factory=NotificationLimits)
    cost_mode: StrictStr = "auto"  # auto | calculate | display
    auto_refresh: StrictBool = True
    refresh_interval: U32 = 300  # seconds
    show_in_system_tray: StrictBool = True  # superseded by system_tray.enabled
    system_tray: SystemTraySettings | None = None
    launch_at_startup: StrictBool = False
    default_export_format: StrictStr = "csv"  # csv | json
    compact_mode: StrictBool = False

    @property
    def click_action(self) -> str:
        """Configured tray click action; ``open_app`` without a tray block."""
        if self.system_tray is None:
            return "open_app"
        return self.system_tray.behavior.click_action

    def to_dict(self) -> dict[str, Any]:
        """Stored form: camelCase keys, the tray block left out when absent."""
        exclude = {"system_tray"} if self.system_tray is None else None
        return self.model_dump(by_alias=True, exclude=exclude)

    @classmethod
    def from_stored(cls, data: Any) -> "Settings":
        """Validate a stored settings value; raises ValidationError on mismatch."""
        return cls.model_validate(data, context={STORED: True})


def migrate_settings(settings: Settings) -> Settings:
    """Fill in a missing tray block from the legacy ``show_in_system_tray`` flag."""
    if settings.system_tray is not None:
        return settings
    return settings.model_copy(
        update={"system_tray": SystemTraySettings(enabled=settings.show_in_system_tray)}
    )


# ── Store ────────────────────────────────────────────────────────


class SettingsStore:
    """Reads and writes the settings document at ``path``."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Settings:
        if not self.path.exists():
            log.info("No settings file at %s, using defaults", self.path)
            return Settings()
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(document, dict) or SETTINGS_KEY not in document:
                log.info("Settings file %s has no %r entry, using defaults", self.path, SETTINGS_KEY)
                return Settings()
            return Settings.from_stored(document[SETTINGS_KEY])
        except ValidationError as e:
            log.warning("Discarding settings in %s that do not match the schema: %s", self.path, e)
            return Settings()
        except (OSError, ValueError, RecursionError) as e:
            # ValueError covers JSON syntax, encoding and oversized integers.
            log.warning("Discarding unreadable settings in %s: %s", self.path, e)
            return Settings()

    def save(self, settings: Settings) -> None:
        """Write ``settings`` as the whole document, replacing the file atomically."""
        try:
            payload = json.dumps({SETTINGS_KEY: settings.to_dict()}, indent=2, allow_nan=False)
        except ValueError as e:
            raise SettingsSaveError(f"Failed to save settings: {e}") from e
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise SettingsSaveError(f"Failed to save settings: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
        log.info("Saved settings to %s", self.path)
