"""Application event sourcing – Repository."""

from __future__ import annotations

import uuid
from typing import Callable, Generic, Sequence, TypeVar

from mp_eventstore.application.event_sourcing.gateway import LogGateway, entity_stream_id
from mp_eventstore.application.event_sourcing.replay import decide, fold
from mp_eventstore.application.event_sourcing.versioned import NO_STREAM, VersionedEntity
from mp_eventstore.kernel.ddd.entity import Entity
from mp_eventstore.kernel.ddd.event import Event
from mp_eventstore.kernel.errors import EntityNotFoundError
from mp_eventstore.observability.logging import get_logger, stream_context

S = TypeVar("S")
C = TypeVar("C")

logger = get_logger(__name__)


class Repository(Generic[S, C]):
    """Create and update entities of one type with optimistic concurrency.

    Every operation re-reads the entity's full history; nothing is cached
    between calls.  Version conflicts are raised to the caller as
    :class:`~mp_eventstore.kernel.errors.ConcurrencyConflictError` and are
    never retried here.

    Example::

        repo = Repository(Counter(), gateway)
        created = await repo.create(Increment(by=3))
        updated = await repo.update(created.id, Increment(by=2))
    """

    def __init__(
        self,
        entity: Entity[S, C],
        gateway: LogGateway,
        *,
        id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
    ) -> None:
        self._entity = entity
        self._gateway = gateway
        self._id_factory = id_factory

    @property
    def entity_type(self) -> str:
        return self._entity.entity_type

    def stream_id(self, entity_id: uuid.UUID) -> str:
        return entity_stream_id(self.entity_type, entity_id)

    async def create(self, command: C) -> VersionedEntity[S]:
        """Create a new entity from *command* under a freshly allocated id."""
        entity_id = self._id_factory()
        initial = self._entity.initial_state()
        events = decide(self._entity, initial, command)
        with stream_context(self.stream_id(entity_id), entity_type=self.entity_type):
            version = await self._commit(entity_id, NO_STREAM, events)
            logger.info("entity_created", entity_id=str(entity_id), version=version)
        return VersionedEntity(id=entity_id, version=version, entity=fold(self._entity, initial, events))

    async def update(self, entity_id: uuid.UUID, command: C) -> VersionedEntity[S]:
        """Apply *command* to the current state of *entity_id*.

        Raises:
            EntityNotFoundError: nothing was ever committed for *entity_id*.
            ConcurrencyConflictError: another writer committed in between.
        """
        current = await self.load(entity_id)
        if not current.exists:
            raise EntityNotFoundError(self.entity_type, entity_id)
        events = decide(self._entity, current.entity, command)
        with stream_context(self.stream_id(entity_id), entity_type=self.entity_type):
            version = await self._commit(entity_id, current.version, events)
            logger.info(
                "entity_updated",
                entity_id=str(entity_id),
                from_version=current.version,
                version=version,
            )
        return VersionedEntity(
            id=entity_id, version=version, entity=fold(self._entity, current.entity, events)
        )

    async def load(self, entity_id: uuid.UUID) -> VersionedEntity[S]:
        """Fold the entity's full history.

        A stream without events yields the initial state at :data:`NO_STREAM`.
        """
        history = await self._gateway.read_forward(self.stream_id(entity_id))
        state = fold(self._entity, self._entity.initial_state(), history.events)
        return VersionedEntity(id=entity_id, version=history.version, entity=state)

    async def _commit(
        self, entity_id: uuid.UUID, expected_version: int, events: Sequence[Event]
    ) -> int:
        if not events:
            logger.debug("command_noop", entity_id=str(entity_id), version=expected_version)
            return expected_version
        codec = self._gateway.codec
        encoded = [codec.encode(e, self.entity_type, entity_id) for e in events]
        return await self._gateway.append(self.stream_id(entity_id), expected_version, encoded)


__all__ = ["Repository"]
