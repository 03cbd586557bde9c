"""Testing fixtures – pytest fixtures wiring the in-memory log service.

Enable with ``pytest_plugins = ["mp_eventstore.testing.fixtures"]`` in a
``conftest.py``.
"""
from mp_eventstore.testing.fixtures.log_service import (
    counter_repository,
    event_codec,
    event_registry,
    log_client,
    log_gateway,
)

__all__ = [
    "counter_repository",
    "event_codec",
    "event_registry",
    "log_client",
    "log_gateway",
]
