"""Application event sourcing – version sentinel and versioned results."""

from __future__ import annotations

import dataclasses
import uuid
from typing import Generic, TypeVar

from mp_eventstore.kernel.ddd.event import Event

S = TypeVar("S")

NO_STREAM: int = -1
"""Expected/observed version of a stream that has no events yet."""


@dataclasses.dataclass(frozen=True)
class EventsWithVersion:
    """All decodable events of a stream, in commit order.

    ``version`` is the position of the stream's last record (even when
    that record was an unknown kind and therefore left out of
    ``events``), or :data:`NO_STREAM`.
    """

    events: tuple[Event, ...]
    version: int


@dataclasses.dataclass(frozen=True)
class VersionedEntity(Generic[S]):
    """Entity state folded up to, and tied to, a committed stream version."""

    id: uuid.UUID  # noqa: A003
    version: int
    entity: S

    @property
    def exists(self) -> bool:
        return self.version != NO_STREAM


__all__ = ["NO_STREAM", "EventsWithVersion", "VersionedEntity"]
