"""Application event sourcing – SubscriptionConsumer.

A long-lived, checkpointed consumer of every event of one entity type.

State machine::

    DETACHED ──run()──▶ ATTACHING ──▶ ATTACHED
                            ▲             │ recoverable drop
                            └─────────────┘
                                          │ fatal drop / handler error
                                          ▼
                                      TERMINATED

Records are handled one at a time: decode, dispatch to every handler
registered for the event's kind, then acknowledge.  Delivery is
at-least-once, so handlers must be idempotent.
"""

from __future__ import annotations

import inspect
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, wait_fixed

from mp_eventstore.application.event_sourcing.codec import EventCodec
from mp_eventstore.application.event_sourcing.drop import SubscriptionDroppedError
from mp_eventstore.application.event_sourcing.gateway import (
    DEFAULT_CATEGORY_PREFIX,
    LogGateway,
    category_stream_id,
)
from mp_eventstore.application.event_sourcing.ports import LogRecord, SubscriptionSession
from mp_eventstore.config.settings import EventStoreSettings
from mp_eventstore.kernel.ddd.entity import Entity
from mp_eventstore.kernel.ddd.event import Envelope, Event
from mp_eventstore.kernel.errors import EventStoreError, UnknownEventKindError
from mp_eventstore.observability.logging import get_logger

logger = get_logger(__name__)

Handler = Callable[[Envelope[Any]], "Awaitable[None] | None"]
H = TypeVar("H", bound=Handler)


class ConsumerState(str, Enum):
    DETACHED = "DETACHED"
    ATTACHING = "ATTACHING"
    ATTACHED = "ATTACHED"
    TERMINATED = "TERMINATED"


class HandlerRegistry:
    """Startup-time mapping of event kind → handlers, in registration order."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}

    def register(self, event_cls: type[Event], handler: Handler) -> None:
        if not (isinstance(event_cls, type) and issubclass(event_cls, Event)):
            raise TypeError(f"{event_cls!r} is not an Event subclass")
        self._handlers.setdefault(event_cls.event_kind(), []).append(handler)

    def handlers_for(self, kind: str) -> list[Handler]:
        return list(self._handlers.get(kind, ()))

    def kinds(self) -> list[str]:
        return sorted(self._handlers)

    def __len__(self) -> int:
        return sum(len(h) for h in self._handlers.values())


def _is_recoverable_drop(exc: BaseException) -> bool:
    return isinstance(exc, SubscriptionDroppedError) and exc.recoverable


class SubscriptionConsumer:
    """Persistent subscriber to the category stream of one entity type.

    Parameters
    ----------
    gateway:
        Log gateway used to provision the group and attach.
    entity_type:
        Entity type name, or the :class:`Entity` subclass itself.
    group_id:
        Persistent subscription group (one checkpoint per group).
    handlers:
        Pre-populated registry; handlers can also be added with
        :meth:`register` or the :meth:`handles` decorator.
    codec:
        Defaults to the gateway's codec.
    category_prefix:
        Prefix of the log service's by-category streams.
    reconnect_delay:
        Seconds to wait before re-attaching after a recoverable drop.

    Example::

        consumer = SubscriptionConsumer(gateway, Counter, "counter-totals")

        @consumer.handles(Incremented)
        async def on_incremented(envelope: Envelope[Incremented]) -> None:
            totals[envelope.entity_id] += envelope.event.by

        await consumer.run()
    """

    def __init__(
        self,
        gateway: LogGateway,
        entity_type: str | type[Entity[Any, Any]],
        group_id: str,
        *,
        handlers: HandlerRegistry | None = None,
        codec: EventCodec | None = None,
        category_prefix: str = DEFAULT_CATEGORY_PREFIX,
        reconnect_delay: float = 0.0,
    ) -> None:
        if isinstance(entity_type, type):
            entity_type = entity_type.entity_type
        self._gateway = gateway
        self._entity_type = entity_type
        self._group_id = group_id
        self._handlers = handlers if handlers is not None else HandlerRegistry()
        self._codec = codec if codec is not None else gateway.codec
        self._stream_id = category_stream_id(entity_type, category_prefix)
        self._reconnect_delay = reconnect_delay
        self._state = ConsumerState.DETACHED
        self._attach_count = 0
        self._log = logger.bind(stream_id=self._stream_id, group_id=group_id)

    @classmethod
    def from_settings(
        cls,
        gateway: LogGateway,
        entity_type: str | type[Entity[Any, Any]],
        group_id: str,
        settings: EventStoreSettings,
        **kwargs: Any,
    ) -> "SubscriptionConsumer":
        """Build a consumer using the category prefix and re-attach delay of *settings*."""
        kwargs.setdefault("category_prefix", settings.category_prefix)
        kwargs.setdefault("reconnect_delay", settings.reconnect_delay)
        return cls(gateway, entity_type, group_id, **kwargs)

    @property
    def state(self) -> ConsumerState:
        return self._state

    @property
    def entity_type(self) -> str:
        return self._entity_type

    @property
    def group_id(self) -> str:
        return self._group_id

    @property
    def stream_id(self) -> str:
        return self._stream_id

    @property
    def attach_count(self) -> int:
        """How many times the consumer has attached (1 + re-attachments)."""
        return self._attach_count

    def register(self, event_cls: type[Event], handler: Handler) -> None:
        self._handlers.register(event_cls, handler)

    def handles(self, event_cls: type[Event]) -> Callable[[H], H]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: H) -> H:
            self.register(event_cls, handler)
            return handler

        return decorator

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Attach and consume until a fatal fault.

        Recoverable drops re-attach indefinitely.  Fatal drops, handler
        errors and infrastructure failures move the consumer to
        ``TERMINATED`` and are re-raised.
        """
        if self._state is not ConsumerState.DETACHED:
            raise RuntimeError(f"Consumer is {self._state.value}, expected DETACHED")

        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_recoverable_drop),
            wait=wait_fixed(self._reconnect_delay),
            before_sleep=self._before_reattach,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    await self._attach()
        except EventStoreError as exc:
            self._log.error("consumer_terminated", state=self._state.value, **exc.log_fields())
            raise
        except Exception as exc:
            self._log.error("consumer_terminated", error=repr(exc), state=self._state.value)
            raise
        finally:
            self._state = ConsumerState.TERMINATED
        self._log.info("consumer_stopped")

    async def _attach(self) -> None:
        self._state = ConsumerState.ATTACHING
        await self._gateway.ensure_subscription(self._stream_id, self._group_id)
        self._state = ConsumerState.ATTACHED
        self._attach_count += 1
        await self._gateway.attach_consumer(self._stream_id, self._group_id, self)

    def _before_reattach(self, retry_state: RetryCallState) -> None:
        self._state = ConsumerState.ATTACHING
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        self._log.warning(
            "subscription_dropped",
            reason=getattr(getattr(exc, "reason", None), "value", None),
            transport_fault=getattr(exc, "transport_fault", None),
            attempt=retry_state.attempt_number,
        )

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def on_record(self, session: SubscriptionSession, record: LogRecord) -> None:
        """Decode, dispatch and acknowledge one delivered record."""
        if not record.is_resolved:
            self._log.debug("unresolved_link_skipped", record_stream=record.stream_id)
            await session.ack(record)
            return

        try:
            event, metadata = self._codec.decode(record.payload, record.metadata)  # type: ignore[arg-type]
        except UnknownEventKindError as exc:
            self.on_unknown_event(record, exc)
            await session.ack(record)
            return

        if metadata.entity_type != self._entity_type:
            self.on_unknown_event(record, None)
            await session.ack(record)
            return

        envelope: Envelope[Event] = Envelope(
            entity_type=metadata.entity_type,
            entity_id=metadata.entity_id,
            event=event,
        )
        self.on_handling_event(envelope)
        for handler in self._handlers.handlers_for(metadata.event_class):
            result = handler(envelope)
            if inspect.isawaitable(result):
                await result
        await session.ack(record)

    def on_handling_event(self, envelope: Envelope[Event]) -> None:
        """Hook called before an event is dispatched.  Logs by default."""
        self._log.debug(
            "handling_event",
            event_kind=envelope.event_kind,
            entity_id=str(envelope.entity_id),
        )

    def on_unknown_event(self, record: LogRecord, error: UnknownEventKindError | None) -> None:
        """Hook called for records this consumer cannot handle.  Logs by default."""
        self._log.info(
            "unknown_event_skipped",
            record_stream=record.stream_id,
            version=record.version,
            type_tag=record.type_tag,
            event_class=error.event_class if error is not None else None,
        )


__all__ = ["ConsumerState", "Handler", "HandlerRegistry", "SubscriptionConsumer"]
