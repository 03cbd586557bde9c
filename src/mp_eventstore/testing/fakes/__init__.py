"""Testing fakes – in-memory doubles for the log-service port."""
from mp_eventstore.testing.fakes.log_client import InMemoryLogClient, InMemorySubscriptionSession

__all__ = ["InMemoryLogClient", "InMemorySubscriptionSession"]
