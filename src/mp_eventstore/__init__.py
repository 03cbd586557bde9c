"""
mp_eventstore – event-sourcing access layer over an append-only log service.

Import path convention::

    from mp_eventstore.kernel.errors import ConcurrencyConflictError
    from mp_eventstore.kernel.ddd import Entity, Event
    from mp_eventstore.application.event_sourcing import Repository, SubscriptionConsumer
    from mp_eventstore.adapters.esdb import EsdbLogClient
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
