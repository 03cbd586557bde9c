"""EventStoreDB adapter – LogClient over ``esdbclient``."""
from mp_eventstore.adapters.esdb.client import EsdbLogClient, EsdbSubscriptionSession

__all__ = ["EsdbLogClient", "EsdbSubscriptionSession"]
