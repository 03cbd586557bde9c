"""Events, their persisted metadata and the subscriber-side envelope."""

from __future__ import annotations

import dataclasses
import uuid
from typing import Any, ClassVar, Generic, TypeVar


@dataclasses.dataclass(frozen=True)
class Event:
    """Base class for events.

    Subclasses are frozen dataclasses carrying the event payload.  The
    *kind* (``module.QualName`` unless ``__event_kind__`` pins it) is the
    identifier persisted in :class:`Metadata` and used for decoding and
    handler dispatch; the *type tag* (the bare class name) is written
    as the log record's type.

    Example::

        @dataclasses.dataclass(frozen=True)
        class Incremented(Event):
            by: int
    """

    __event_kind__: ClassVar[str | None] = None

    @classmethod
    def event_kind(cls) -> str:
        return cls.__event_kind__ or f"{cls.__module__}.{cls.__qualname__}"

    @classmethod
    def type_tag(cls) -> str:
        return cls.__name__


@dataclasses.dataclass(frozen=True)
class Metadata:
    """Routing information stored next to every event payload."""

    event_class: str
    entity_type: str
    entity_id: uuid.UUID

    def to_dict(self) -> dict[str, Any]:
        return {
            "eventClass": self.event_class,
            "entityType": self.entity_type,
            "entityId": str(self.entity_id),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Metadata":
        """Build from the persisted JSON object.

        Raises ``KeyError``, ``TypeError`` or ``ValueError`` when a field
        is missing or the entity id is not a UUID.
        """
        return cls(
            event_class=str(data["eventClass"]),
            entity_type=str(data["entityType"]),
            entity_id=uuid.UUID(str(data["entityId"])),
        )


E = TypeVar("E", bound=Event)


@dataclasses.dataclass(frozen=True)
class Envelope(Generic[E]):
    """An event delivered to a subscriber, with the entity that produced it."""

    entity_type: str
    entity_id: uuid.UUID
    event: E

    @property
    def event_kind(self) -> str:
        return self.event.event_kind()


__all__ = ["Envelope", "Event", "Metadata"]
