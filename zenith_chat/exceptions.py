"""Domain exception hierarchy for the Zenith chat application."""

from __future__ import annotations

from enum import Enum


class ZenithChatError(RuntimeError):
    """Base class for all domain-level chat errors."""


class ErrorKind(str, Enum):
    """Closed set of reasons a completion request can fail."""

    UNREACHABLE = "UNREACHABLE"
    REQUEST_REJECTED = "REQUEST_REJECTED"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    INCOMPLETE_RESPONSE = "INCOMPLETE_RESPONSE"


class CompletionError(ZenithChatError):
    """Raised by the completion client; ``kind`` says which check failed."""

    def __init__(
        self,
        kind: ErrorKind,
        detail: str = "",
        *,
        status_code: int | None = None,
        missing_field: str | None = None,
    ) -> None:
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail
        self.status_code = status_code
        self.missing_field = missing_field


class ConfigValidationError(ZenithChatError):
    """Raised when configuration cannot be validated safely."""
