"""Kernel error hierarchy, re-exported.

Hierarchy::

    EventStoreError
    ├── DomainError              (domain.py)
    │   ├── NotFoundError
    │   │   └── EntityNotFoundError
    │   ├── ConflictError
    │   │   └── ConcurrencyConflictError
    │   └── UnsupportedCommandError
    └── InfrastructureError      (infrastructure.py)
        ├── SerializationError
        │   ├── UnknownEventKindError
        │   └── MalformedPayloadError
        ├── AppendFailedError
        ├── ReadFailedError
        └── ProvisioningFailedError

``SubscriptionDroppedError`` (an ``InfrastructureError``) lives next to
the drop-reason classification in
``mp_eventstore.application.event_sourcing.drop``; ``ConfigError`` and
its subclasses live in ``mp_eventstore.config.validation``.
"""

from mp_eventstore.kernel.errors.base import EventStoreError
from mp_eventstore.kernel.errors.domain import (
    ConcurrencyConflictError,
    ConflictError,
    DomainError,
    EntityNotFoundError,
    NotFoundError,
    UnsupportedCommandError,
)
from mp_eventstore.kernel.errors.infrastructure import (
    AppendFailedError,
    InfrastructureError,
    MalformedPayloadError,
    ProvisioningFailedError,
    ReadFailedError,
    SerializationError,
    UnknownEventKindError,
)

__all__ = [
    "AppendFailedError",
    "ConcurrencyConflictError",
    "ConflictError",
    "DomainError",
    "EntityNotFoundError",
    "EventStoreError",
    "InfrastructureError",
    "MalformedPayloadError",
    "NotFoundError",
    "ProvisioningFailedError",
    "ReadFailedError",
    "SerializationError",
    "UnknownEventKindError",
    "UnsupportedCommandError",
]
