"""Entity: capability interface for event-sourced aggregate types."""

from __future__ import annotations

import abc
from typing import Any, ClassVar, Generic, NoReturn, Sequence, TypeVar

from mp_eventstore.kernel.ddd.event import Event
from mp_eventstore.kernel.errors.domain import UnsupportedCommandError

S = TypeVar("S")
C = TypeVar("C")


class Entity(abc.ABC, Generic[S, C]):
    """An aggregate type whose state is a left-fold over its events.

    Implementations supply the initial state plus two pure functions:
    :meth:`apply` (state transition for one event) and :meth:`decide`
    (events implied by a command).  Neither may mutate the state passed
    in; use immutable state values (frozen dataclasses, tuples).

    ``entity_type`` names the stream category and defaults to the class
    name.

    Example::

        class Counter(Entity[CounterState, CounterCommand]):
            def initial_state(self) -> CounterState:
                return CounterState(value=0)

            def apply(self, state, event):
                if isinstance(event, Incremented):
                    return CounterState(state.value + event.by)
                return state

            def decide(self, state, command):
                if isinstance(command, Increment):
                    return [Incremented(by=command.by)]
                self.unsupported(command)
    """

    entity_type: ClassVar[str] = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if not cls.__dict__.get("entity_type"):
            cls.entity_type = cls.__name__

    @abc.abstractmethod
    def initial_state(self) -> S:
        """Return the zero-value state of a not-yet-created entity."""

    @abc.abstractmethod
    def apply(self, state: S, event: Event) -> S:
        """Return the state that results from *event* on top of *state*."""

    @abc.abstractmethod
    def decide(self, state: S, command: C) -> Sequence[Event]:
        """Return the ordered events *command* implies against *state*.

        An empty sequence means the command was accepted as a no-op.
        Commands the entity cannot interpret must go through
        :meth:`unsupported`.
        """

    def unsupported(self, command: Any) -> NoReturn:
        raise UnsupportedCommandError(self.entity_type, command)


__all__ = ["Entity"]
