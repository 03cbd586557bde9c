"""Config validation errors."""
from __future__ import annotations

from typing import Any

from mp_eventstore.kernel.errors import EventStoreError

_SECRET_MARKERS = ("PASSWORD", "SECRET", "TOKEN")


def _is_secret(setting: str) -> bool:
    return any(marker in setting.upper() for marker in _SECRET_MARKERS)


class ConfigError(EventStoreError):
    """Settings could not be loaded or failed validation."""

    default_code = "config_error"

    def __init__(self, message: str, *, setting: str | None = None, **kwargs: Any) -> None:
        if setting is not None:
            kwargs.setdefault("detail", {"setting": setting})
        super().__init__(message, **kwargs)
        self.setting = setting


class MissingRequiredSettingError(ConfigError):
    """A setting without a default is absent from the source."""

    default_code = "missing_setting"

    def __init__(self, setting: str) -> None:
        super().__init__(f"{setting} is required but not set", setting=setting)


class InvalidSettingValueError(ConfigError):
    """A setting is present but unusable.  Secret values are never echoed."""

    default_code = "invalid_setting"

    def __init__(self, setting: str, value: object, reason: str, **kwargs: Any) -> None:
        shown = "<redacted>" if _is_secret(setting) else repr(value)
        super().__init__(f"{setting}={shown} is invalid: {reason}", setting=setting, **kwargs)
        self.value = value
        self.reason = reason


__all__ = ["ConfigError", "InvalidSettingValueError", "MissingRequiredSettingError"]
