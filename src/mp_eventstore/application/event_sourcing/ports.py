"""Application event sourcing – LogClient port.

The boundary to the external append-only log service.  Implementations
translate their transport's results into the structured statuses below
so that :class:`~mp_eventstore.application.event_sourcing.gateway.LogGateway`
never has to inspect exception text.

Implementations:

* :class:`mp_eventstore.adapters.esdb.EsdbLogClient` – EventStoreDB.
* :class:`mp_eventstore.testing.fakes.InMemoryLogClient` – tests.
"""

from __future__ import annotations

import abc
import dataclasses
import uuid
from enum import Enum
from typing import Any, AsyncIterator, Protocol


class AppendStatus(str, Enum):
    SUCCESS = "SUCCESS"
    VERSION_CONFLICT = "VERSION_CONFLICT"
    FAILURE = "FAILURE"


class ReadStatus(str, Enum):
    SUCCESS = "SUCCESS"
    STREAM_NOT_FOUND = "STREAM_NOT_FOUND"
    STREAM_DELETED = "STREAM_DELETED"
    FAILURE = "FAILURE"


class ProvisionStatus(str, Enum):
    SUCCESS = "SUCCESS"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    FAILURE = "FAILURE"


class ConsumerStrategy(str, Enum):
    """How a persistent subscription spreads records over attached consumers."""

    PINNED = "Pinned"
    ROUND_ROBIN = "RoundRobin"
    DISPATCH_TO_SINGLE = "DispatchToSingle"


@dataclasses.dataclass(frozen=True)
class NewRecord:
    """A record about to be appended."""

    type_tag: str
    payload: bytes
    metadata: bytes
    record_id: uuid.UUID = dataclasses.field(default_factory=uuid.uuid4)


@dataclasses.dataclass(frozen=True)
class LogRecord:
    """A committed record as read or delivered by the log service.

    ``stream_id``/``version`` identify the original record, after link
    resolution.  ``payload`` is ``None`` when a link could not be
    resolved (its target stream was deleted).  ``raw`` keeps the
    client's native object for acknowledgment.
    """

    stream_id: str
    version: int
    type_tag: str
    payload: bytes | None
    metadata: bytes
    record_id: uuid.UUID | None = None
    raw: Any = dataclasses.field(default=None, compare=False, repr=False)

    @property
    def is_resolved(self) -> bool:
        return self.payload is not None


@dataclasses.dataclass(frozen=True)
class AppendResult:
    status: AppendStatus
    next_version: int | None = None
    actual_version: int | None = None
    error: BaseException | None = dataclasses.field(default=None, compare=False)


@dataclasses.dataclass(frozen=True)
class ReadSlice:
    status: ReadStatus
    records: tuple[LogRecord, ...] = ()
    last_version: int | None = None
    is_end_of_stream: bool = True
    error: BaseException | None = dataclasses.field(default=None, compare=False)


@dataclasses.dataclass(frozen=True)
class SubscriptionSettings:
    """Persistent subscription group settings.

    The defaults are the ones every group is provisioned with: follow
    links to the original events, start from the first record, pin each
    partition to one consumer and checkpoint after every acknowledged
    record.
    """

    resolve_links: bool = True
    start_from_beginning: bool = True
    consumer_strategy: ConsumerStrategy = ConsumerStrategy.PINNED
    min_checkpoint_count: int = 1


class SubscriptionSession(abc.ABC):
    """One attachment to a persistent subscription group.

    Iterating yields delivered records in commit order and raises
    :class:`~mp_eventstore.application.event_sourcing.drop.SubscriptionDroppedError`
    when the server side closes the session.
    """

    @abc.abstractmethod
    def __aiter__(self) -> AsyncIterator[LogRecord]: ...

    @abc.abstractmethod
    async def ack(self, record: LogRecord) -> None:
        """Acknowledge *record*, advancing the group's checkpoint."""

    @abc.abstractmethod
    async def stop(self) -> None:
        """Detach from the group.  Safe to call more than once."""

    async def __aenter__(self) -> "SubscriptionSession":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.stop()


class RecordListener(Protocol):
    """Receives records pushed through an attached session."""

    async def on_record(self, session: SubscriptionSession, record: LogRecord) -> None: ...


class LogClient(abc.ABC):
    """Port: the capabilities required from the external log service."""

    @abc.abstractmethod
    async def append(
        self,
        stream_id: str,
        expected_version: int,
        records: list[NewRecord],
    ) -> AppendResult:
        """Atomically append *records* if the stream is at *expected_version*."""

    @abc.abstractmethod
    async def read_forward(
        self,
        stream_id: str,
        from_version: int,
        max_count: int,
        resolve_links: bool = True,
    ) -> ReadSlice:
        """Read up to *max_count* records starting at *from_version*."""

    @abc.abstractmethod
    async def create_persistent_subscription(
        self,
        stream_id: str,
        group_id: str,
        settings: SubscriptionSettings,
    ) -> ProvisionStatus: ...

    @abc.abstractmethod
    async def update_persistent_subscription(
        self,
        stream_id: str,
        group_id: str,
        settings: SubscriptionSettings,
    ) -> ProvisionStatus: ...

    @abc.abstractmethod
    async def subscribe(self, stream_id: str, group_id: str) -> SubscriptionSession:
        """Attach to an existing persistent subscription group."""


__all__ = [
    "AppendResult",
    "AppendStatus",
    "ConsumerStrategy",
    "LogClient",
    "LogRecord",
    "NewRecord",
    "ProvisionStatus",
    "ReadSlice",
    "ReadStatus",
    "RecordListener",
    "SubscriptionSession",
    "SubscriptionSettings",
]
