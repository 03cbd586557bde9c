"""Observability – structured logging."""

from mp_eventstore.observability.logging import JsonLoggerFactory, get_logger

__all__ = ["JsonLoggerFactory", "get_logger"]
