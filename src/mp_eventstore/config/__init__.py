"""Config – 12-factor settings and loaders."""

from mp_eventstore.config.settings import (
    EnvSettingsLoader,
    EventStoreSettings,
    Settings,
    SettingsLoader,
)
from mp_eventstore.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

__all__ = [
    "ConfigError",
    "EnvSettingsLoader",
    "EventStoreSettings",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "Settings",
    "SettingsLoader",
]
