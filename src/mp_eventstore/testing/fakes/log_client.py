"""Testing fakes – InMemoryLogClient."""
from __future__ import annotations

import asyncio
import dataclasses
from typing import Any, AsyncIterator

from mp_eventstore.application.event_sourcing.drop import DropReason, SubscriptionDroppedError
from mp_eventstore.application.event_sourcing.ports import (
    AppendResult,
    AppendStatus,
    LogClient,
    LogRecord,
    NewRecord,
    ProvisionStatus,
    ReadSlice,
    ReadStatus,
    SubscriptionSession,
    SubscriptionSettings,
)
from mp_eventstore.application.event_sourcing.versioned import NO_STREAM


@dataclasses.dataclass
class _Group:
    stream_id: str
    group_id: str
    settings: SubscriptionSettings
    start_position: int = 0
    acked: set[int] = dataclasses.field(default_factory=set)


class InMemoryLogClient(LogClient):
    """In-process append-only log for tests.

    Behaves like the log service the library is written against:

    * conditional appends with per-stream versions starting at 0;
    * by-category streams (``"$ce-<category>"``, category = text before
      the first ``-`` of a stream id) listing every record of the
      category in global commit order;
    * persistent subscription groups whose checkpoint advances on every
      ack, so a new session only receives records not yet acknowledged;
    * fault injection: :meth:`drop_subscriptions`, :meth:`fail_next_subscribe`,
      :meth:`fail_next_append`, :meth:`fail_next_read`,
      :meth:`fail_next_provision`.

    Every network call yields to the event loop once, so concurrent
    coroutines interleave the way real round-trips would.
    """

    def __init__(self, category_prefix: str = "$ce-") -> None:
        self._category_prefix = category_prefix
        self._streams: dict[str, list[LogRecord]] = {}
        self._log: list[LogRecord] = []
        self._groups: dict[tuple[str, str], _Group] = {}
        self._sessions: list[InMemorySubscriptionSession] = []
        self._waiters: set[asyncio.Event] = set()
        self._append_failures: list[AppendStatus] = []
        self._read_failures: list[ReadStatus] = []
        self._provision_failures: list[ProvisionStatus] = []
        self._subscribe_failures: list[BaseException] = []
        self.subscribe_count = 0

    # ------------------------------------------------------------------
    # LogClient
    # ------------------------------------------------------------------

    async def append(
        self,
        stream_id: str,
        expected_version: int,
        records: list[NewRecord],
    ) -> AppendResult:
        await asyncio.sleep(0)
        if self._append_failures:
            return AppendResult(status=self._append_failures.pop(0))

        stream = self._streams.get(stream_id, [])
        current = len(stream) - 1 if stream else NO_STREAM
        if current != expected_version:
            return AppendResult(status=AppendStatus.VERSION_CONFLICT, actual_version=current)

        stream = self._streams.setdefault(stream_id, [])
        for record in records:
            stored = LogRecord(
                stream_id=stream_id,
                version=len(stream),
                type_tag=record.type_tag,
                payload=record.payload,
                metadata=record.metadata,
                record_id=record.record_id,
            )
            stream.append(stored)
            self._log.append(stored)
        self._notify()
        return AppendResult(status=AppendStatus.SUCCESS, next_version=current + len(records))

    async def read_forward(
        self,
        stream_id: str,
        from_version: int,
        max_count: int,
        resolve_links: bool = True,  # noqa: ARG002
    ) -> ReadSlice:
        await asyncio.sleep(0)
        if self._read_failures:
            return ReadSlice(status=self._read_failures.pop(0))
        if not self._is_category(stream_id) and stream_id not in self._streams:
            return ReadSlice(status=ReadStatus.STREAM_NOT_FOUND)

        source = self._source(stream_id)
        chunk = source[from_version:from_version + max_count]
        return ReadSlice(
            status=ReadStatus.SUCCESS,
            records=tuple(chunk),
            last_version=len(source) - 1 if source else NO_STREAM,
            is_end_of_stream=from_version + max_count >= len(source),
        )

    async def create_persistent_subscription(
        self,
        stream_id: str,
        group_id: str,
        settings: SubscriptionSettings,
    ) -> ProvisionStatus:
        await asyncio.sleep(0)
        if self._provision_failures:
            return self._provision_failures.pop(0)
        key = (stream_id, group_id)
        if key in self._groups:
            return ProvisionStatus.ALREADY_EXISTS
        start = 0 if settings.start_from_beginning else len(self._source(stream_id))
        self._groups[key] = _Group(stream_id, group_id, settings, start_position=start)
        return ProvisionStatus.SUCCESS

    async def update_persistent_subscription(
        self,
        stream_id: str,
        group_id: str,
        settings: SubscriptionSettings,
    ) -> ProvisionStatus:
        await asyncio.sleep(0)
        group = self._groups.get((stream_id, group_id))
        if group is None:
            return ProvisionStatus.FAILURE
        group.settings = settings
        return ProvisionStatus.SUCCESS

    async def subscribe(self, stream_id: str, group_id: str) -> SubscriptionSession:
        await asyncio.sleep(0)
        self.subscribe_count += 1
        if self._subscribe_failures:
            raise self._subscribe_failures.pop(0)
        group = self._groups.get((stream_id, group_id))
        if group is None:
            raise SubscriptionDroppedError(
                DropReason.PERSISTENT_SUBSCRIPTION_DELETED,
                message=f"Subscription group '{group_id}' on '{stream_id}' does not exist",
            )
        session = InMemorySubscriptionSession(self, group)
        self._sessions.append(session)
        return session

    # ------------------------------------------------------------------
    # Fault injection
    # ------------------------------------------------------------------

    def drop_subscriptions(
        self,
        reason: DropReason = DropReason.CONNECTION_CLOSED,
        *,
        transport_fault: bool = False,
    ) -> int:
        """Close every active session with *reason*.  Returns how many were dropped."""
        dropped = 0
        for session in self.active_sessions:
            session._drop(SubscriptionDroppedError(reason, transport_fault=transport_fault))
            dropped += 1
        self._notify()
        return dropped

    def fail_next_subscribe(self, error: BaseException) -> None:
        self._subscribe_failures.append(error)

    def fail_next_append(self, status: AppendStatus = AppendStatus.FAILURE) -> None:
        self._append_failures.append(status)

    def fail_next_read(self, status: ReadStatus = ReadStatus.FAILURE) -> None:
        self._read_failures.append(status)

    def fail_next_provision(self, status: ProvisionStatus = ProvisionStatus.FAILURE) -> None:
        self._provision_failures.append(status)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def stream(self, stream_id: str) -> list[LogRecord]:
        return list(self._source(stream_id))

    def stream_version(self, stream_id: str) -> int:
        stream = self._streams.get(stream_id)
        return len(stream) - 1 if stream else NO_STREAM

    def group(self, stream_id: str, group_id: str) -> _Group | None:
        return self._groups.get((stream_id, group_id))

    def acked(self, stream_id: str, group_id: str) -> list[LogRecord]:
        """Records acknowledged by *group_id*, in source order."""
        group = self._groups.get((stream_id, group_id))
        if group is None:
            return []
        source = self._source(stream_id)
        return [source[pos] for pos in sorted(group.acked) if pos < len(source)]

    @property
    def active_sessions(self) -> list["InMemorySubscriptionSession"]:
        return [s for s in self._sessions if s.active]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_category(self, stream_id: str) -> bool:
        return stream_id.startswith(self._category_prefix)

    def _source(self, stream_id: str) -> list[LogRecord]:
        if self._is_category(stream_id):
            category = stream_id[len(self._category_prefix):]
            return [r for r in self._log if r.stream_id.split("-", 1)[0] == category]
        return self._streams.get(stream_id, [])

    async def _wait_for_change(self) -> None:
        waiter = asyncio.Event()
        self._waiters.add(waiter)
        try:
            await waiter.wait()
        finally:
            self._waiters.discard(waiter)

    def _notify(self) -> None:
        for waiter in list(self._waiters):
            waiter.set()


class InMemorySubscriptionSession(SubscriptionSession):
    """A session on an :class:`InMemoryLogClient` subscription group."""

    def __init__(self, client: InMemoryLogClient, group: _Group) -> None:
        self._client = client
        self._group = group
        self._cursor = group.start_position
        self._stopped = False
        self._dropped: SubscriptionDroppedError | None = None
        self.delivered: list[LogRecord] = []

    @property
    def active(self) -> bool:
        return not self._stopped and self._dropped is None

    def _drop(self, error: SubscriptionDroppedError) -> None:
        self._dropped = error

    async def __aiter__(self) -> AsyncIterator[LogRecord]:  # type: ignore[override]
        while True:
            if self._dropped is not None:
                raise self._dropped
            if self._stopped:
                return
            source = self._client._source(self._group.stream_id)
            while self._cursor < len(source) and self._cursor in self._group.acked:
                self._cursor += 1
            if self._cursor < len(source):
                position = self._cursor
                self._cursor += 1
                record = dataclasses.replace(source[position], raw=position)
                self.delivered.append(record)
                yield record
                continue
            await self._client._wait_for_change()

    async def ack(self, record: LogRecord) -> None:
        # Acks on a closed session never reach the server; the record is redelivered.
        if not self.active:
            return
        position: Any = record.raw
        if isinstance(position, int):
            self._group.acked.add(position)

    async def stop(self) -> None:
        self._stopped = True
        self._client._notify()


__all__ = ["InMemoryLogClient", "InMemorySubscriptionSession"]
