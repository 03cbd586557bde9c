"""Config settings – Settings base class."""
from __future__ import annotations

import dataclasses
import re
from typing import Any, ClassVar, Mapping, TypeVar

T = TypeVar("T", bound="Settings")

_URI_CREDENTIALS = re.compile(r"(?P<scheme>[a-z+]+://)(?P<user>[^:/@\s]+):[^@/\s]+@")


def mask_uri_password(value: str) -> str:
    """Replace the password of any ``scheme://user:password@`` prefix with ``***``."""
    return _URI_CREDENTIALS.sub(r"\g<scheme>\g<user>:***@", value)


@dataclasses.dataclass
class Settings:
    """Base class for settings read from ``<PREFIX>_<FIELD>`` variables.

    Subclasses are dataclasses that set ``_prefix`` and override
    :meth:`_validate`.  Validation runs on construction, whatever the
    source of the values.  Fields listed in ``_secret_fields`` are masked
    by :meth:`redacted`, as are passwords embedded in connection strings.
    """

    _prefix: ClassVar[str] = ""
    _secret_fields: ClassVar[frozenset[str]] = frozenset()

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Raise :class:`~mp_eventstore.config.validation.InvalidSettingValueError` on bad values."""

    @classmethod
    def from_env(cls: type[T], environ: Mapping[str, str] | None = None) -> T:
        """Load from *environ* (default :data:`os.environ`)."""
        from mp_eventstore.config.settings.loaders import EnvSettingsLoader

        return EnvSettingsLoader(environ).load(cls)

    def redacted(self) -> dict[str, Any]:
        """Field values with secrets masked, safe to log."""
        values: dict[str, Any] = {}
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if field.name in self._secret_fields and value is not None:
                value = "***"
            elif isinstance(value, str):
                value = mask_uri_password(value)
            values[field.name] = value
        return values


__all__ = ["Settings", "mask_uri_password"]
