"""Config settings – EnvSettingsLoader."""
from __future__ import annotations

import abc
import dataclasses
import os
from typing import Any, Callable, Mapping, TypeVar

from mp_eventstore.config.settings.base import Settings
from mp_eventstore.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

T = TypeVar("T", bound=Settings)

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def _to_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"expected one of {sorted(_TRUE | _FALSE)}")


_CONVERTERS: dict[str, Callable[[str], Any]] = {
    "bool": _to_bool,
    "int": int,
    "float": float,
    "str": str,
}


def _annotation_name(type_hint: Any) -> tuple[str, bool]:
    """Return the base type name of *type_hint* and whether it is optional.

    Annotations arrive as strings under postponed evaluation, so
    ``"int | None"`` and ``int`` both resolve to ``("int", ...)``.
    """
    text = type_hint if isinstance(type_hint, str) else getattr(type_hint, "__name__", str(type_hint))
    parts = [p.strip() for p in text.split("|")]
    optional = "None" in parts
    names = [p for p in parts if p != "None"]
    return (names[0] if len(names) == 1 else text), optional


class SettingsLoader(abc.ABC):
    """Port: load settings from an external source."""

    @abc.abstractmethod
    def load(self, settings_class: type[T]) -> T: ...


class EnvSettingsLoader(SettingsLoader):
    """Load settings from environment variables named ``<PREFIX>_<FIELD>``.

    Unset variables fall back to the field default.  An empty value for
    an optional field means ``None``.  *environ* defaults to
    :data:`os.environ`; pass a mapping in tests.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    def load(self, settings_class: type[T]) -> T:
        source = os.environ if self._environ is None else self._environ
        prefix = getattr(settings_class, "_prefix", "").upper()
        values: dict[str, Any] = {}

        for field in dataclasses.fields(settings_class):  # type: ignore[arg-type]
            key = f"{prefix}_{field.name}".upper().lstrip("_")
            if key not in source:
                if (
                    field.default is dataclasses.MISSING
                    and field.default_factory is dataclasses.MISSING  # type: ignore[misc]
                ):
                    raise MissingRequiredSettingError(key)
                continue
            raw = source[key]
            try:
                values[field.name] = self._convert(raw, field.type)
            except ValueError as exc:
                raise InvalidSettingValueError(key, raw, str(exc), cause=exc) from exc

        try:
            return settings_class(**values)
        except ConfigError:
            raise
        except (TypeError, ValueError) as exc:
            raise ConfigError(
                f"Cannot build {settings_class.__name__}: {exc}", cause=exc
            ) from exc

    def _convert(self, raw: str, type_hint: Any) -> Any:
        name, optional = _annotation_name(type_hint)
        if optional and raw == "":
            return None
        converter = _CONVERTERS.get(name)
        return raw if converter is None else converter(raw)


__all__ = ["EnvSettingsLoader", "SettingsLoader"]
