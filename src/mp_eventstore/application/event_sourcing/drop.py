"""Application event sourcing – subscription drop reasons.

A persistent subscription session ends with a reason code.  Whether the
subscriber re-attaches is decided only by :func:`is_recoverable`, an
explicit allow-list over :class:`DropReason`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from mp_eventstore.kernel.errors.infrastructure import InfrastructureError


class DropReason(str, Enum):
    USER_INITIATED = "USER_INITIATED"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    ACCESS_DENIED = "ACCESS_DENIED"
    SUBSCRIBING_ERROR = "SUBSCRIBING_ERROR"
    SERVER_ERROR = "SERVER_ERROR"
    CONNECTION_CLOSED = "CONNECTION_CLOSED"
    CATCH_UP_ERROR = "CATCH_UP_ERROR"
    PROCESSING_QUEUE_OVERFLOW = "PROCESSING_QUEUE_OVERFLOW"
    EVENT_HANDLER_EXCEPTION = "EVENT_HANDLER_EXCEPTION"
    MAX_SUBSCRIBERS_REACHED = "MAX_SUBSCRIBERS_REACHED"
    PERSISTENT_SUBSCRIPTION_DELETED = "PERSISTENT_SUBSCRIPTION_DELETED"
    UNKNOWN = "UNKNOWN"


RECOVERABLE_DROP_REASONS: frozenset[DropReason] = frozenset(
    {
        DropReason.CONNECTION_CLOSED,
        DropReason.SERVER_ERROR,
        DropReason.SUBSCRIBING_ERROR,
        DropReason.CATCH_UP_ERROR,
    }
)


def is_recoverable(reason: DropReason, transport_fault: bool = False) -> bool:
    """Return ``True`` when a session dropped for *reason* should be re-attached."""
    return transport_fault or reason in RECOVERABLE_DROP_REASONS


class SubscriptionDroppedError(InfrastructureError):
    """A subscription session was closed by the log service or its transport."""

    default_code = "subscription_dropped"

    def __init__(
        self,
        reason: DropReason,
        *,
        transport_fault: bool = False,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault(
            "detail", {"reason": reason.value, "transport_fault": transport_fault}
        )
        super().__init__(message or f"Subscription dropped: {reason.value}", **kwargs)
        self.reason = reason
        self.transport_fault = transport_fault

    @property
    def recoverable(self) -> bool:
        return is_recoverable(self.reason, self.transport_fault)


__all__ = [
    "RECOVERABLE_DROP_REASONS",
    "DropReason",
    "SubscriptionDroppedError",
    "is_recoverable",
]
