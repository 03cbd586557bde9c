"""Application event sourcing – entity replay engine.

``fold`` derives state from history; ``decide`` derives new history from
a command.  Both are pure: replaying the same events always yields the
same state, and ``fold(fold(s, a), b) == fold(s, a + b)``.
"""

from __future__ import annotations

from typing import Iterable, TypeVar

from mp_eventstore.kernel.ddd.entity import Entity
from mp_eventstore.kernel.ddd.event import Event

S = TypeVar("S")
C = TypeVar("C")


def fold(entity: Entity[S, C], state: S, events: Iterable[Event]) -> S:
    """Apply *events* to *state* in order."""
    for event in events:
        state = entity.apply(state, event)
    return state


def decide(entity: Entity[S, C], state: S, command: C) -> list[Event]:
    """Return the events *command* implies against *state*.

    Raises:
        UnsupportedCommandError: *entity* cannot interpret *command*.
        TypeError: the entity produced something that is not an :class:`Event`.
    """
    events = list(entity.decide(state, command))
    for event in events:
        if not isinstance(event, Event):
            raise TypeError(
                f"{entity.entity_type}.decide returned {type(event).__name__}, expected an Event"
            )
    return events


__all__ = ["decide", "fold"]
