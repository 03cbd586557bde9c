"""Application: Event Sourcing.

Repository/replay protocol and the persistent subscription consumer on
top of an append-only log service reached through :class:`LogClient`.
"""

from mp_eventstore.application.event_sourcing.codec import (
    EncodedEvent,
    EventCodec,
    EventRegistry,
    dataclass_decoder,
)
from mp_eventstore.application.event_sourcing.drop import (
    RECOVERABLE_DROP_REASONS,
    DropReason,
    SubscriptionDroppedError,
    is_recoverable,
)
from mp_eventstore.application.event_sourcing.gateway import (
    LogGateway,
    category_stream_id,
    entity_stream_id,
)
from mp_eventstore.application.event_sourcing.ports import (
    AppendResult,
    AppendStatus,
    ConsumerStrategy,
    LogClient,
    LogRecord,
    NewRecord,
    ProvisionStatus,
    ReadSlice,
    ReadStatus,
    RecordListener,
    SubscriptionSession,
    SubscriptionSettings,
)
from mp_eventstore.application.event_sourcing.replay import decide, fold
from mp_eventstore.application.event_sourcing.repository import Repository
from mp_eventstore.application.event_sourcing.subscriber import (
    ConsumerState,
    Handler,
    HandlerRegistry,
    SubscriptionConsumer,
)
from mp_eventstore.application.event_sourcing.versioned import (
    NO_STREAM,
    EventsWithVersion,
    VersionedEntity,
)

__all__ = [
    "NO_STREAM",
    "RECOVERABLE_DROP_REASONS",
    "AppendResult",
    "AppendStatus",
    "ConsumerState",
    "ConsumerStrategy",
    "DropReason",
    "EncodedEvent",
    "EventCodec",
    "EventRegistry",
    "EventsWithVersion",
    "Handler",
    "HandlerRegistry",
    "LogClient",
    "LogGateway",
    "LogRecord",
    "NewRecord",
    "ProvisionStatus",
    "ReadSlice",
    "ReadStatus",
    "RecordListener",
    "Repository",
    "SubscriptionConsumer",
    "SubscriptionDroppedError",
    "SubscriptionSession",
    "SubscriptionSettings",
    "VersionedEntity",
    "category_stream_id",
    "dataclass_decoder",
    "decide",
    "entity_stream_id",
    "fold",
    "is_recoverable",
]
