"""Infrastructure errors: log-service I/O and (de)serialisation failures."""

from __future__ import annotations

from typing import Any

from mp_eventstore.kernel.errors.base import EventStoreError


class InfrastructureError(EventStoreError):
    """Infrastructure / I/O failure that is not a business rule violation."""

    default_code = "infrastructure_error"


class SerializationError(InfrastructureError):
    """Failed to serialize or deserialize a payload."""

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.payload_type = payload_type


class UnknownEventKindError(SerializationError):
    """The event-kind identifier does not resolve to a registered schema.

    Readers and subscribers skip such records so that newer event kinds
    never crash an older consumer.
    """

    default_code = "unknown_event_kind"

    def __init__(self, event_class: str, **kwargs: Any) -> None:
        super().__init__(
            f"Unknown event kind '{event_class}'", payload_type=event_class, **kwargs
        )
        self.event_class = event_class


class MalformedPayloadError(SerializationError):
    """Record bytes do not parse against the resolved schema."""

    default_code = "malformed_payload"


class AppendFailedError(InfrastructureError):
    """The log service rejected an append for a reason other than a version conflict."""

    default_code = "append_failed"

    def __init__(self, stream_id: str, status: Any = None, **kwargs: Any) -> None:
        msg = f"Failed to write events to stream '{stream_id}'"
        if status is not None:
            msg += f": {status}"
        super().__init__(msg, **kwargs)
        self.stream_id = stream_id
        self.status = status


class ReadFailedError(InfrastructureError):
    """A forward read could not be completed or decoded."""

    default_code = "read_failed"

    def __init__(
        self,
        stream_id: str,
        message: str | None = None,
        *,
        status: Any = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message or f"Failed to read events from stream '{stream_id}': {status}",
            **kwargs,
        )
        self.stream_id = stream_id
        self.status = status


class ProvisioningFailedError(InfrastructureError):
    """A persistent subscription group could not be created or updated."""

    default_code = "provisioning_failed"

    def __init__(self, stream_id: str, group_id: str, **kwargs: Any) -> None:
        super().__init__(
            f"Failed to subscribe to '{stream_id}' as '{group_id}'", **kwargs
        )
        self.stream_id = stream_id
        self.group_id = group_id


__all__ = [
    "AppendFailedError",
    "InfrastructureError",
    "MalformedPayloadError",
    "ProvisioningFailedError",
    "ReadFailedError",
    "SerializationError",
    "UnknownEventKindError",
]
