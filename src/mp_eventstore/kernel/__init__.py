"""Kernel – framework-agnostic building blocks."""

from mp_eventstore.kernel.ddd import Entity, Envelope, Event, Metadata
from mp_eventstore.kernel.errors import (
    AppendFailedError,
    ConcurrencyConflictError,
    DomainError,
    EntityNotFoundError,
    EventStoreError,
    InfrastructureError,
    MalformedPayloadError,
    ProvisioningFailedError,
    ReadFailedError,
    UnknownEventKindError,
    UnsupportedCommandError,
)

__all__ = [
    "AppendFailedError",
    "ConcurrencyConflictError",
    "DomainError",
    "Entity",
    "EntityNotFoundError",
    "Envelope",
    "Event",
    "EventStoreError",
    "InfrastructureError",
    "MalformedPayloadError",
    "Metadata",
    "ProvisioningFailedError",
    "ReadFailedError",
    "UnknownEventKindError",
    "UnsupportedCommandError",
]
