"""Root of the mp-eventstore error hierarchy."""

from __future__ import annotations

import json
from typing import Any, Mapping


class EventStoreError(Exception):
    """Root of every error raised by this library.

    Args:
        message: Human-readable description.
        code: Machine-readable slug (defaults to ``default_code``).
        detail: Structured context, e.g. the stream id and versions involved.
        cause: The exception that triggered this one; chained as ``__cause__``.
    """

    default_code: str = "eventstore_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        detail: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail: dict[str, Any] = dict(detail or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
        }
        if self.cause is not None:
            data["cause"] = repr(self.cause)
        return data

    def log_fields(self) -> dict[str, Any]:
        """Flatten into keyword arguments for a structlog call."""
        fields: dict[str, Any] = {"error_code": self.code, "error": self.message}
        fields.update(self.detail)
        if self.cause is not None:
            fields["cause"] = repr(self.cause)
        return fields

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code}: {self.message!r})"


__all__ = ["EventStoreError"]
