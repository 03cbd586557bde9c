"""Kernel DDD building blocks: events, envelopes and the entity interface."""

from mp_eventstore.kernel.ddd.entity import Entity
from mp_eventstore.kernel.ddd.event import Envelope, Event, Metadata

__all__ = ["Entity", "Envelope", "Event", "Metadata"]
