"""Domain errors: business rule violations and write conflicts."""

from __future__ import annotations

from typing import Any

from mp_eventstore.kernel.errors.base import EventStoreError


class DomainError(EventStoreError):
    """Raised when a domain rule is violated."""

    default_code = "domain_error"


class NotFoundError(DomainError):
    """The requested resource does not exist."""

    default_code = "not_found"

    def __init__(
        self,
        resource: str,
        identifier: Any = None,
        **kwargs: Any,
    ) -> None:
        if identifier is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} '{identifier}' not found"
            kwargs.setdefault("detail", {"resource": resource, "identifier": str(identifier)})
        super().__init__(message, **kwargs)
        self.resource = resource
        self.identifier = identifier


class EntityNotFoundError(NotFoundError):
    """No event has ever been committed to the entity's stream."""

    default_code = "entity_not_found"

    def __init__(self, entity_type: str, entity_id: Any, **kwargs: Any) -> None:
        super().__init__(entity_type, entity_id, **kwargs)
        self.entity_type = entity_type
        self.entity_id = entity_id


class ConflictError(DomainError):
    """The operation conflicts with existing state."""

    default_code = "conflict"


class ConcurrencyConflictError(ConflictError):
    """The stream's version did not match the expected version of an append.

    Only the caller can resolve this (re-read and retry, or reject); the
    library never retries on its own.
    """

    default_code = "concurrency_conflict"

    def __init__(
        self,
        stream_id: str,
        expected: int,
        actual: int | None = None,
        **kwargs: Any,
    ) -> None:
        msg = f"Concurrency conflict on stream '{stream_id}': expected version {expected}"
        if actual is not None:
            msg += f", found {actual}"
        kwargs.setdefault(
            "detail", {"stream_id": stream_id, "expected": expected, "actual": actual}
        )
        super().__init__(msg, **kwargs)
        self.stream_id = stream_id
        self.expected = expected
        self.actual = actual


class UnsupportedCommandError(DomainError):
    """An entity was asked to decide on a command it cannot interpret."""

    default_code = "unsupported_command"

    def __init__(self, entity_type: str, command: Any, **kwargs: Any) -> None:
        super().__init__(
            f"{entity_type} does not support command {type(command).__name__}",
            **kwargs,
        )
        self.entity_type = entity_type
        self.command = command


__all__ = [
    "ConcurrencyConflictError",
    "ConflictError",
    "DomainError",
    "EntityNotFoundError",
    "NotFoundError",
    "UnsupportedCommandError",
]
