"""Observability – get_logger, stream-scoped log context and credential masking."""
from __future__ import annotations

import contextlib
from typing import Any, Iterator, MutableMapping

import structlog

from mp_eventstore.config.settings.base import mask_uri_password


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a bound structlog logger.

    Parameters
    ----------
    name:
        Logger name (typically ``__name__`` of the calling module).
    **initial_values:
        Key-value pairs to bind on the returned logger.
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


@contextlib.contextmanager
def stream_context(stream_id: str, **extra: Any) -> Iterator[None]:
    """Bind ``stream_id`` (and *extra*) to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(stream_id=stream_id, **extra):
        yield


_MASKED_KEYS = frozenset({"password", "secret", "token"})


def mask_credentials(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor: hide passwords in connection strings and secret keys."""
    for key, value in event_dict.items():
        if key.lower() in _MASKED_KEYS and value is not None:
            event_dict[key] = "***"
        elif isinstance(value, str) and "@" in value:
            event_dict[key] = mask_uri_password(value)
    return event_dict


__all__ = ["get_logger", "mask_credentials", "stream_context"]
