"""Observability – structlog configuration and logger access."""
from mp_eventstore.observability.logging.factory import JsonLoggerFactory
from mp_eventstore.observability.logging.processors import (
    get_logger,
    mask_credentials,
    stream_context,
)

__all__ = ["JsonLoggerFactory", "get_logger", "mask_credentials", "stream_context"]
