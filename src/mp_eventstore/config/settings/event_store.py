"""Config settings – EventStoreSettings."""
from __future__ import annotations

import dataclasses
import logging
from typing import ClassVar

from mp_eventstore.config.settings.base import Settings
from mp_eventstore.config.validation import InvalidSettingValueError


@dataclasses.dataclass
class EventStoreSettings(Settings):
    """Connection and behaviour settings, read from ``EVENTSTORE_*`` variables.

    ``read_batch_size`` is the page size of forward reads.
    ``category_prefix`` addresses the log service's by-category stream
    that subscriptions consume.  ``reconnect_delay`` is the pause (in
    seconds) before a subscriber re-attaches after a recoverable drop.
    """

    _prefix: ClassVar[str] = "EVENTSTORE"
    _secret_fields: ClassVar[frozenset[str]] = frozenset({"password"})

    uri: str = "esdb://localhost:2113?Tls=false"
    username: str | None = None
    password: str | None = None
    read_batch_size: int = 4096
    category_prefix: str = "$ce-"
    reconnect_delay: float = 0.0
    log_level: str = "INFO"

    def _validate(self) -> None:
        if not self.uri:
            raise InvalidSettingValueError("uri", self.uri, "must not be empty")
        if self.read_batch_size <= 0:
            raise InvalidSettingValueError(
                "read_batch_size", self.read_batch_size, "must be positive"
            )
        if self.reconnect_delay < 0:
            raise InvalidSettingValueError(
                "reconnect_delay", self.reconnect_delay, "must not be negative"
            )
        if (self.username is None) != (self.password is None):
            raise InvalidSettingValueError(
                "username", self.username, "username and password must be set together"
            )
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise InvalidSettingValueError("log_level", self.log_level, "unknown level")


__all__ = ["EventStoreSettings"]
