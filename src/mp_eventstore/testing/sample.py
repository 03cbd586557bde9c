"""Testing – sample ``Counter`` entity.

A deliberately small domain for exercising repositories and subscribers:
increments, decrements and a ``Closed`` tombstone after which the
counter refuses changes.
"""
from __future__ import annotations

import dataclasses
from typing import Sequence, Union

from mp_eventstore.application.event_sourcing.codec import EventRegistry
from mp_eventstore.kernel.ddd import Entity, Event
from mp_eventstore.kernel.errors import DomainError


@dataclasses.dataclass(frozen=True)
class CounterState:
    value: int = 0
    closed: bool = False


@dataclasses.dataclass(frozen=True)
class Increment:
    by: int = 1


@dataclasses.dataclass(frozen=True)
class Decrement:
    by: int = 1


@dataclasses.dataclass(frozen=True)
class Close:
    reason: str = ""


CounterCommand = Union[Increment, Decrement, Close]


@dataclasses.dataclass(frozen=True)
class Incremented(Event):
    by: int


@dataclasses.dataclass(frozen=True)
class Decremented(Event):
    by: int


@dataclasses.dataclass(frozen=True)
class Closed(Event):
    reason: str = ""


class Counter(Entity[CounterState, CounterCommand]):
    def initial_state(self) -> CounterState:
        return CounterState()

    def apply(self, state: CounterState, event: Event) -> CounterState:
        if isinstance(event, Incremented):
            return dataclasses.replace(state, value=state.value + event.by)
        if isinstance(event, Decremented):
            return dataclasses.replace(state, value=state.value - event.by)
        if isinstance(event, Closed):
            return dataclasses.replace(state, closed=True)
        return state

    def decide(self, state: CounterState, command: CounterCommand) -> Sequence[Event]:
        if isinstance(command, Close):
            return [] if state.closed else [Closed(reason=command.reason)]
        if isinstance(command, (Increment, Decrement)) and state.closed:
            raise DomainError("Counter is closed")
        if isinstance(command, Increment):
            return [Incremented(by=command.by)] if command.by else []
        if isinstance(command, Decrement):
            return [Decremented(by=command.by)] if command.by else []
        self.unsupported(command)


def counter_registry() -> EventRegistry:
    """Registry holding every ``Counter`` event kind."""
    return EventRegistry(Incremented, Decremented, Closed)


__all__ = [
    "Close",
    "Closed",
    "Counter",
    "CounterCommand",
    "CounterState",
    "Decrement",
    "Decremented",
    "Increment",
    "Incremented",
    "counter_registry",
]
