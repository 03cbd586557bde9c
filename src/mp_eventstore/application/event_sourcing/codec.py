"""Application event sourcing – EventRegistry and EventCodec.

Events travel as two JSON documents: the payload (the event's dataclass
fields) and the metadata (:class:`~mp_eventstore.kernel.ddd.event.Metadata`).
Decoding reads the metadata first, resolves the persisted event kind
through the registry and only then parses the payload.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import json
import types
import typing
import uuid
from decimal import Decimal
from enum import Enum
from typing import Any, Callable

from mp_eventstore.kernel.ddd.event import Event, Metadata
from mp_eventstore.kernel.errors.infrastructure import (
    MalformedPayloadError,
    UnknownEventKindError,
)

Decoder = Callable[[bytes], Event]


@dataclasses.dataclass(frozen=True)
class EncodedEvent:
    """An event ready to be written as a log record."""

    payload: bytes
    metadata: bytes
    type_tag: str


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (uuid.UUID, Decimal)):
        return str(value)
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        # Enum members do not order
        return sorted(value, key=str)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _unwrap_optional(hint: Any) -> Any:
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


_SCALARS: dict[type, Callable[[Any], Any]] = {
    uuid.UUID: lambda v: uuid.UUID(str(v)),
    dt.datetime: dt.datetime.fromisoformat,
    dt.date: dt.date.fromisoformat,
    dt.time: dt.time.fromisoformat,
    Decimal: lambda v: Decimal(str(v)),
}

_COLLECTIONS = (list, set, frozenset)


def _coerce_generic(value: Any, origin: Any, args: tuple[Any, ...]) -> Any:
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(_coerce(v, args[0]) for v in value)
        if args:
            return tuple(_coerce(v, a) for v, a in zip(value, args))
        return tuple(value)
    if origin in _COLLECTIONS:
        item = args[0] if args else Any
        return origin(_coerce(v, item) for v in value)
    if origin is dict:
        key, item = args if len(args) == 2 else (Any, Any)
        return {_coerce(k, key): _coerce(v, item) for k, v in value.items()}
    return value


def _coerce(value: Any, hint: Any) -> Any:
    """Rebuild the Python value :func:`_json_default` flattened for *hint*."""
    if value is None:
        return None
    hint = _unwrap_optional(hint)
    origin = typing.get_origin(hint)
    if origin is not None:
        return _coerce_generic(value, origin, typing.get_args(hint))
    if not isinstance(hint, type):
        return value
    if issubclass(hint, Enum):
        return hint(value)
    converter = _SCALARS.get(hint)
    if converter is not None:
        return converter(value)
    if hint is tuple or hint in _COLLECTIONS:
        return hint(value)
    return value


def dataclass_decoder(event_cls: type[Event]) -> Decoder:
    """Build the default decoder for a dataclass event type.

    Unknown JSON keys are ignored so that producers may add fields
    before consumers know about them; missing fields without a default
    raise ``TypeError``.
    """
    try:
        hints = typing.get_type_hints(event_cls)
    except (NameError, TypeError):
        hints = {}
    fields = {f.name: f for f in dataclasses.fields(event_cls) if f.init}

    def decode(payload: bytes) -> Event:
        data = json.loads(payload)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        kwargs = {
            name: _coerce(data[name], hints.get(name, Any))
            for name in fields
            if name in data
        }
        return event_cls(**kwargs)

    return decode


class EventRegistry:
    """Startup-time mapping of event kind → decode function.

    Example::

        registry = EventRegistry()
        registry.register(Incremented)
        registry.register(Renamed, decoder=decode_renamed)
    """

    def __init__(self, *event_classes: type[Event]) -> None:
        self._decoders: dict[str, Decoder] = {}
        self._classes: dict[str, type[Event]] = {}
        for event_cls in event_classes:
            self.register(event_cls)

    def register(self, event_cls: type[Event], decoder: Decoder | None = None) -> type[Event]:
        """Register *event_cls* under its kind.  Returns the class (usable as decorator)."""
        if not (isinstance(event_cls, type) and issubclass(event_cls, Event)):
            raise TypeError(f"{event_cls!r} is not an Event subclass")
        if decoder is None:
            if not dataclasses.is_dataclass(event_cls):
                raise TypeError(f"{event_cls.__name__} needs a decoder: it is not a dataclass")
            decoder = dataclass_decoder(event_cls)
        kind = event_cls.event_kind()
        existing = self._classes.get(kind)
        if existing is not None and existing is not event_cls:
            raise ValueError(f"Event kind '{kind}' is already registered by {existing!r}")
        self._classes[kind] = event_cls
        self._decoders[kind] = decoder
        return event_cls

    def resolve(self, kind: str) -> Decoder:
        try:
            return self._decoders[kind]
        except KeyError:
            raise UnknownEventKindError(kind) from None

    def event_class(self, kind: str) -> type[Event]:
        try:
            return self._classes[kind]
        except KeyError:
            raise UnknownEventKindError(kind) from None

    def kinds(self) -> list[str]:
        return sorted(self._classes)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, type) and issubclass(item, Event):
            return self._classes.get(item.event_kind()) is item
        return item in self._classes

    def __len__(self) -> int:
        return len(self._classes)


class EventCodec:
    """Encodes events with their routing metadata and decodes them back."""

    def __init__(self, registry: EventRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> EventRegistry:
        return self._registry

    def encode(self, event: Event, entity_type: str, entity_id: uuid.UUID) -> EncodedEvent:
        kind = event.event_kind()
        if kind not in self._registry:
            raise UnknownEventKindError(kind)
        metadata = Metadata(event_class=kind, entity_type=entity_type, entity_id=entity_id)
        try:
            payload = json.dumps(
                dataclasses.asdict(event), default=_json_default, separators=(",", ":")
            ).encode()
        except (TypeError, ValueError) as exc:
            raise MalformedPayloadError(
                f"Cannot encode {type(event).__name__}: {exc}", payload_type=kind, cause=exc
            ) from exc
        return EncodedEvent(
            payload=payload,
            metadata=json.dumps(metadata.to_dict(), separators=(",", ":")).encode(),
            type_tag=event.type_tag(),
        )

    def decode_metadata(self, metadata: bytes) -> Metadata:
        try:
            data = json.loads(metadata)
            if not isinstance(data, dict):
                raise TypeError(f"expected a JSON object, got {type(data).__name__}")
            return Metadata.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedPayloadError(
                f"Cannot read event metadata: {exc}", cause=exc
            ) from exc

    def decode(self, payload: bytes, metadata: bytes) -> tuple[Event, Metadata]:
        """Return the typed event and its metadata.

        Raises:
            UnknownEventKindError: the persisted kind is not registered.
            MalformedPayloadError: metadata or payload does not parse.
        """
        meta = self.decode_metadata(metadata)
        decoder = self._registry.resolve(meta.event_class)
        try:
            event = decoder(payload)
        except (ArithmeticError, KeyError, TypeError, ValueError) as exc:
            raise MalformedPayloadError(
                f"Cannot decode {meta.event_class}: {exc}",
                payload_type=meta.event_class,
                cause=exc,
            ) from exc
        return event, meta


__all__ = [
    "Decoder",
    "EncodedEvent",
    "EventCodec",
    "EventRegistry",
    "dataclass_decoder",
]
