"""Unit tests for subscription drop classification."""

from __future__ import annotations

import pytest

from mp_eventstore.application.event_sourcing import (
    RECOVERABLE_DROP_REASONS,
    DropReason,
    SubscriptionDroppedError,
    is_recoverable,
)
from mp_eventstore.kernel.errors import InfrastructureError


class TestIsRecoverable:
    @pytest.mark.parametrize(
        "reason",
        [
            DropReason.CONNECTION_CLOSED,
            DropReason.SERVER_ERROR,
            DropReason.SUBSCRIBING_ERROR,
            DropReason.CATCH_UP_ERROR,
        ],
    )
    def test_allow_listed_reasons(self, reason: DropReason) -> None:
        assert is_recoverable(reason)

    @pytest.mark.parametrize(
        "reason", [r for r in DropReason if r not in RECOVERABLE_DROP_REASONS]
    )
    def test_everything_else_is_fatal(self, reason: DropReason) -> None:
        assert not is_recoverable(reason)

    @pytest.mark.parametrize("reason", list(DropReason))
    def test_transport_fault_always_recoverable(self, reason: DropReason) -> None:
        assert is_recoverable(reason, transport_fault=True)

    def test_allow_list_is_exactly_four_reasons(self) -> None:
        assert len(RECOVERABLE_DROP_REASONS) == 4


class TestSubscriptionDroppedError:
    def test_is_infrastructure_error(self) -> None:
        assert issubclass(SubscriptionDroppedError, InfrastructureError)

    def test_carries_reason_and_detail(self) -> None:
        err = SubscriptionDroppedError(DropReason.SERVER_ERROR)
        assert err.reason is DropReason.SERVER_ERROR
        assert err.recoverable
        assert err.code == "subscription_dropped"
        assert err.detail == {"reason": "SERVER_ERROR", "transport_fault": False}
        assert "SERVER_ERROR" in err.message

    def test_fatal_reason(self) -> None:
        err = SubscriptionDroppedError(DropReason.MAX_SUBSCRIBERS_REACHED)
        assert not err.recoverable

    def test_transport_fault_overrides_reason(self) -> None:
        err = SubscriptionDroppedError(DropReason.UNKNOWN, transport_fault=True)
        assert err.recoverable
        assert err.transport_fault

    def test_custom_message_and_cause(self) -> None:
        cause = ConnectionResetError("peer reset")
        err = SubscriptionDroppedError(
            DropReason.CONNECTION_CLOSED, message="gone", cause=cause
        )
        assert err.message == "gone"
        assert err.__cause__ is cause
        assert err.to_dict()["cause"] == repr(cause)
