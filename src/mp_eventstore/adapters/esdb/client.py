"""EventStoreDB adapter – EsdbLogClient.

Implements the :class:`~mp_eventstore.application.event_sourcing.ports.LogClient`
port on top of the ``esdbclient`` asyncio client.  Client exceptions are
mapped onto structured statuses (``AlreadyExists`` →
``ProvisionStatus.ALREADY_EXISTS``, ``WrongCurrentVersion`` →
``AppendStatus.VERSION_CONFLICT``, ``StreamIsDeleted`` →
``ReadStatus.STREAM_DELETED``, …) and subscription faults onto
:class:`~mp_eventstore.application.event_sourcing.drop.SubscriptionDroppedError`.
"""
from __future__ import annotations

import urllib.parse
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
from mp_eventstore.config.settings import EventStoreSettings
from mp_eventstore.observability.logging import get_logger

logger = get_logger(__name__)

LINK_EVENT_TYPE = "$>"


def _require_esdbclient() -> Any:
    try:
        import esdbclient  # type: ignore[import-untyped]
        import esdbclient.exceptions  # type: ignore[import-untyped]  # noqa: F401
        return esdbclient
    except ImportError as exc:
        raise ImportError("Install 'mp-eventstore[esdb]' to use the EventStoreDB adapter") from exc


def _uri_with_credentials(uri: str, username: str | None, password: str | None) -> str:
    if not username:
        return uri
    parts = urllib.parse.urlsplit(uri)
    host = parts.netloc.rsplit("@", 1)[-1]
    user = urllib.parse.quote(username, safe="")
    secret = urllib.parse.quote(password or "", safe="")
    return urllib.parse.urlunsplit(parts._replace(netloc=f"{user}:{secret}@{host}"))


def _to_log_record(recorded: Any) -> LogRecord:
    unresolved = recorded.type == LINK_EVENT_TYPE
    return LogRecord(
        stream_id=recorded.stream_name,
        version=recorded.stream_position,
        type_tag=recorded.type,
        payload=None if unresolved else bytes(recorded.data),
        metadata=bytes(recorded.metadata or b""),
        record_id=recorded.id,
        raw=recorded,
    )


def _drop_error(exc: BaseException, esdb: Any, *, subscribing: bool = False) -> SubscriptionDroppedError:
    errors = esdb.exceptions
    transport_fault = False
    if isinstance(exc, errors.ServiceUnavailable):
        reason = DropReason.CONNECTION_CLOSED
        transport_fault = True
    elif isinstance(exc, errors.NotFound):
        reason = DropReason.PERSISTENT_SUBSCRIPTION_DELETED
    elif isinstance(exc, errors.ConsumerTooSlow):
        reason = DropReason.CATCH_UP_ERROR
    elif subscribing:
        reason = DropReason.SUBSCRIBING_ERROR
    elif isinstance(exc, errors.GrpcError):
        reason = DropReason.SERVER_ERROR
    else:
        reason = DropReason.UNKNOWN
    return SubscriptionDroppedError(
        reason, transport_fault=transport_fault, message=f"Subscription dropped: {exc!r}", cause=exc
    )


class EsdbSubscriptionSession(SubscriptionSession):
    """Wraps an ``esdbclient`` persistent subscription."""

    def __init__(self, subscription: Any, esdb: Any) -> None:
        self._subscription = subscription
        self._esdb = esdb
        self._stopped = False

    async def __aiter__(self) -> AsyncIterator[LogRecord]:  # type: ignore[override]
        iterator = self._subscription.__aiter__()
        while True:
            try:
                recorded = await iterator.__anext__()
            except StopAsyncIteration:
                return
            except self._esdb.exceptions.EventStoreDBClientException as exc:
                raise _drop_error(exc, self._esdb) from exc
            yield _to_log_record(recorded)

    async def ack(self, record: LogRecord) -> None:
        await self._subscription.ack(record.raw)

    async def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        await self._subscription.stop()


class EsdbLogClient(LogClient):
    """EventStoreDB-backed :class:`LogClient`.

    Reconnection after transient faults is handled by ``esdbclient``
    itself; persistent subscriptions are acknowledged manually.

    Usage::

        client = await EsdbLogClient.from_settings(EventStoreSettings())
        gateway = LogGateway(client, codec)
    """

    def __init__(self, client: Any) -> None:
        self._esdb = _require_esdbclient()
        self._client = client

    @classmethod
    async def from_settings(cls, settings: EventStoreSettings) -> "EsdbLogClient":
        """Build and connect an asyncio ``esdbclient`` from *settings*."""
        esdb = _require_esdbclient()
        client_cls = getattr(esdb, "AsyncEventStoreDBClient", None) or esdb.AsyncioEventStoreDBClient
        uri = _uri_with_credentials(settings.uri, settings.username, settings.password)
        client = client_cls(uri=uri)
        await client.connect()
        logger.info("log_client_connected", **settings.redacted())
        return cls(client)

    async def close(self) -> None:
        await self._client.close()

    async def __aenter__(self) -> "EsdbLogClient":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    async def append(
        self,
        stream_id: str,
        expected_version: int,
        records: list[NewRecord],
    ) -> AppendResult:
        esdb = self._esdb
        current_version: Any = (
            esdb.StreamState.NO_STREAM if expected_version == NO_STREAM else expected_version
        )
        events = [
            esdb.NewEvent(type=r.type_tag, data=r.payload, metadata=r.metadata, id=r.record_id)
            for r in records
        ]
        try:
            await self._client.append_to_stream(
                stream_id, current_version=current_version, events=events
            )
        except esdb.exceptions.WrongCurrentVersion as exc:
            return AppendResult(status=AppendStatus.VERSION_CONFLICT, error=exc)
        except esdb.exceptions.EventStoreDBClientException as exc:
            return AppendResult(status=AppendStatus.FAILURE, error=exc)
        return AppendResult(
            status=AppendStatus.SUCCESS, next_version=expected_version + len(records)
        )

    async def read_forward(
        self,
        stream_id: str,
        from_version: int,
        max_count: int,
        resolve_links: bool = True,
    ) -> ReadSlice:
        esdb = self._esdb
        try:
            recorded = await self._client.get_stream(
                stream_id,
                stream_position=from_version,
                limit=max_count,
                resolve_links=resolve_links,
            )
        except esdb.exceptions.NotFound:
            return ReadSlice(status=ReadStatus.STREAM_NOT_FOUND)
        except esdb.exceptions.StreamIsDeleted as exc:
            return ReadSlice(status=ReadStatus.STREAM_DELETED, error=exc)
        except esdb.exceptions.EventStoreDBClientException as exc:
            return ReadSlice(status=ReadStatus.FAILURE, error=exc)

        records = tuple(_to_log_record(r) for r in recorded)
        return ReadSlice(
            status=ReadStatus.SUCCESS,
            records=records,
            last_version=records[-1].version if records else None,
            is_end_of_stream=len(records) < max_count,
        )

    def _subscription_kwargs(self, settings: SubscriptionSettings) -> dict[str, Any]:
        return {
            "from_end": not settings.start_from_beginning,
            "resolve_links": settings.resolve_links,
            "consumer_strategy": settings.consumer_strategy.value,
            "min_checkpoint_count": settings.min_checkpoint_count,
        }

    async def create_persistent_subscription(
        self,
        stream_id: str,
        group_id: str,
        settings: SubscriptionSettings,
    ) -> ProvisionStatus:
        esdb = self._esdb
        try:
            await self._client.create_subscription_to_stream(
                group_name=group_id, stream_name=stream_id, **self._subscription_kwargs(settings)
            )
        except esdb.exceptions.AlreadyExists:
            return ProvisionStatus.ALREADY_EXISTS
        except esdb.exceptions.ServiceUnavailable as exc:
            raise _drop_error(exc, esdb, subscribing=True) from exc
        except esdb.exceptions.EventStoreDBClientException as exc:
            logger.error("subscription_create_failed", stream_id=stream_id, group_id=group_id, error=repr(exc))
            return ProvisionStatus.FAILURE
        return ProvisionStatus.SUCCESS

    async def update_persistent_subscription(
        self,
        stream_id: str,
        group_id: str,
        settings: SubscriptionSettings,
    ) -> ProvisionStatus:
        esdb = self._esdb
        try:
            await self._client.update_subscription_to_stream(
                group_name=group_id, stream_name=stream_id, **self._subscription_kwargs(settings)
            )
        except esdb.exceptions.ServiceUnavailable as exc:
            raise _drop_error(exc, esdb, subscribing=True) from exc
        except esdb.exceptions.EventStoreDBClientException as exc:
            logger.error("subscription_update_failed", stream_id=stream_id, group_id=group_id, error=repr(exc))
            return ProvisionStatus.FAILURE
        return ProvisionStatus.SUCCESS

    async def subscribe(self, stream_id: str, group_id: str) -> SubscriptionSession:
        esdb = self._esdb
        try:
            subscription = await self._client.read_subscription_to_stream(
                group_name=group_id, stream_name=stream_id
            )
        except esdb.exceptions.EventStoreDBClientException as exc:
            raise _drop_error(exc, esdb, subscribing=True) from exc
        return EsdbSubscriptionSession(subscription, esdb)


__all__ = ["EsdbLogClient", "EsdbSubscriptionSession"]
