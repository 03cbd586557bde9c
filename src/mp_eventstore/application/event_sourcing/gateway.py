"""Application event sourcing – LogGateway.

The four log operations everything above it relies on: conditional
append, full forward read, idempotent subscription provisioning and
consumer attachment.  Statuses reported by the :class:`LogClient` are
normalised here into the library's error hierarchy.
"""

from __future__ import annotations

import uuid
from typing import Sequence

from mp_eventstore.application.event_sourcing.codec import EncodedEvent, EventCodec
from mp_eventstore.application.event_sourcing.ports import (
    AppendStatus,
    LogClient,
    NewRecord,
    ProvisionStatus,
    ReadStatus,
    RecordListener,
    SubscriptionSettings,
)
from mp_eventstore.application.event_sourcing.versioned import NO_STREAM, EventsWithVersion
from mp_eventstore.config.settings import EventStoreSettings
from mp_eventstore.kernel.ddd.event import Event
from mp_eventstore.kernel.errors import (
    AppendFailedError,
    ConcurrencyConflictError,
    MalformedPayloadError,
    ProvisioningFailedError,
    ReadFailedError,
    UnknownEventKindError,
)
from mp_eventstore.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_READ_BATCH_SIZE = 4096
DEFAULT_CATEGORY_PREFIX = "$ce-"


def entity_stream_id(entity_type: str, entity_id: uuid.UUID) -> str:
    """Build the canonical entity stream id: ``"<EntityType>-<uuid>"``."""
    return f"{entity_type}-{entity_id}"


def category_stream_id(entity_type: str, prefix: str = DEFAULT_CATEGORY_PREFIX) -> str:
    """Build the id of the by-category stream aggregating every *entity_type* stream."""
    return f"{prefix}{entity_type}"


class LogGateway:
    """Thin adapter over a :class:`LogClient`.

    Parameters
    ----------
    client:
        The log-service client.
    codec:
        Used to decode records on forward reads.
    read_batch_size:
        Page size of forward reads.
    subscription_settings:
        Settings every persistent subscription group is provisioned with.
    """

    def __init__(
        self,
        client: LogClient,
        codec: EventCodec,
        *,
        read_batch_size: int = DEFAULT_READ_BATCH_SIZE,
        subscription_settings: SubscriptionSettings | None = None,
    ) -> None:
        if read_batch_size <= 0:
            raise ValueError("read_batch_size must be positive")
        self._client = client
        self._codec = codec
        self._read_batch_size = read_batch_size
        self._subscription_settings = (
            subscription_settings if subscription_settings is not None else SubscriptionSettings()
        )

    @classmethod
    def from_settings(
        cls,
        client: LogClient,
        codec: EventCodec,
        settings: EventStoreSettings,
        *,
        subscription_settings: SubscriptionSettings | None = None,
    ) -> "LogGateway":
        return cls(
            client,
            codec,
            read_batch_size=settings.read_batch_size,
            subscription_settings=subscription_settings,
        )

    @property
    def codec(self) -> EventCodec:
        return self._codec

    async def append(
        self,
        stream_id: str,
        expected_version: int,
        encoded_events: Sequence[EncodedEvent],
    ) -> int:
        """Append *encoded_events* if *stream_id* is at *expected_version*.

        Returns the stream's new version.

        Raises:
            ConcurrencyConflictError: the stream is not at *expected_version*.
            AppendFailedError: any other non-success outcome.
        """
        records = [
            NewRecord(type_tag=e.type_tag, payload=e.payload, metadata=e.metadata)
            for e in encoded_events
        ]
        result = await self._client.append(stream_id, expected_version, records)

        if result.status is AppendStatus.VERSION_CONFLICT:
            logger.warning(
                "append_conflict",
                stream_id=stream_id,
                expected_version=expected_version,
                actual_version=result.actual_version,
            )
            raise ConcurrencyConflictError(stream_id, expected_version, result.actual_version)
        if result.status is not AppendStatus.SUCCESS or result.next_version is None:
            raise AppendFailedError(stream_id, result.status, cause=result.error)

        logger.info(
            "events_appended",
            stream_id=stream_id,
            count=len(records),
            next_version=result.next_version,
        )
        return result.next_version

    async def read_forward(self, stream_id: str) -> EventsWithVersion:
        """Read and decode every record of *stream_id* from the beginning.

        Records of unregistered kinds are left out.  A stream that does
        not exist yields no events and :data:`NO_STREAM`.

        Raises:
            ReadFailedError: the read failed or a record could not be decoded.
        """
        events: list[Event] = []
        version = NO_STREAM
        from_version = 0
        skipped = 0

        while True:
            page = await self._client.read_forward(
                stream_id, from_version, self._read_batch_size, resolve_links=True
            )
            if page.status is ReadStatus.STREAM_NOT_FOUND:
                break
            if page.status is not ReadStatus.SUCCESS:
                raise ReadFailedError(stream_id, status=page.status, cause=page.error)

            for record in page.records:
                version = record.version
                if not record.is_resolved:
                    skipped += 1
                    continue
                try:
                    event, _ = self._codec.decode(record.payload, record.metadata)  # type: ignore[arg-type]
                except UnknownEventKindError as exc:
                    skipped += 1
                    logger.debug(
                        "unknown_event_skipped",
                        stream_id=stream_id,
                        version=record.version,
                        event_class=exc.event_class,
                    )
                    continue
                except MalformedPayloadError as exc:
                    raise ReadFailedError(
                        stream_id,
                        f"Cannot decode record {record.version} of stream '{stream_id}'",
                        cause=exc,
                    ) from exc
                events.append(event)

            if page.last_version is not None:
                version = max(version, page.last_version)
            if page.is_end_of_stream or not page.records:
                break
            from_version = page.records[-1].version + 1

        logger.debug(
            "stream_read", stream_id=stream_id, count=len(events), skipped=skipped, version=version
        )
        return EventsWithVersion(events=tuple(events), version=version)

    async def ensure_subscription(self, stream_id: str, group_id: str) -> None:
        """Create the persistent subscription group, or update it if it exists.

        Raises:
            ProvisioningFailedError: the group could be neither created nor updated.
        """
        settings = self._subscription_settings
        status = await self._client.create_persistent_subscription(stream_id, group_id, settings)
        if status is ProvisionStatus.ALREADY_EXISTS:
            status = await self._client.update_persistent_subscription(
                stream_id, group_id, settings
            )
            if status is not ProvisionStatus.SUCCESS:
                raise ProvisioningFailedError(stream_id, group_id, detail={"status": status.value})
            logger.info("subscription_updated", stream_id=stream_id, group_id=group_id)
            return
        if status is not ProvisionStatus.SUCCESS:
            raise ProvisioningFailedError(stream_id, group_id, detail={"status": status.value})
        logger.info("subscription_created", stream_id=stream_id, group_id=group_id)

    async def attach_consumer(
        self,
        stream_id: str,
        group_id: str,
        listener: RecordListener,
    ) -> None:
        """Push delivered records to *listener* until the session ends.

        Does not return while attached.  A server-side close raises
        :class:`~mp_eventstore.application.event_sourcing.drop.SubscriptionDroppedError`;
        errors raised by *listener* propagate unchanged.  The session is
        stopped on every exit path.
        """
        session = await self._client.subscribe(stream_id, group_id)
        logger.info("consumer_attached", stream_id=stream_id, group_id=group_id)
        async with session:
            async for record in session:
                await listener.on_record(session, record)
        logger.info("consumer_detached", stream_id=stream_id, group_id=group_id)


__all__ = [
    "DEFAULT_CATEGORY_PREFIX",
    "DEFAULT_READ_BATCH_SIZE",
    "LogGateway",
    "category_stream_id",
    "entity_stream_id",
]
