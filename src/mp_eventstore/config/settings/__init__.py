"""Config settings – 12-factor env-based configuration."""
from mp_eventstore.config.settings.base import Settings
from mp_eventstore.config.settings.event_store import EventStoreSettings
from mp_eventstore.config.settings.loaders import EnvSettingsLoader, SettingsLoader

__all__ = ["EnvSettingsLoader", "EventStoreSettings", "Settings", "SettingsLoader"]
