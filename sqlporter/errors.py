"""Custom exception hierarchy for sqlporter.

All public errors inherit from SQLPorterError so callers can catch the base
class for any sqlporter-specific failure.
"""
from __future__ import annotations

from typing import Any


class SQLPorterError(Exception):
    """Base exception for all sqlporter errors."""


class ValidationError(SQLPorterError):
    """Raised before any work starts when the call itself is unusable.

    Covers an invalid or missing execution backend handle and invalid
    options.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. INVALID_BACKEND).
        details: Extra context about the rejected input.
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details: dict[str, Any] = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error response."""
        return {
            "error": self.code,
            "message": str(self),
            "details": self.details,
        }


class InvalidBackendError(ValidationError):
    """Raised when the handle passed as backend cannot execute statements."""

    def __init__(self, handle: Any, supported: list[str]) -> None:
        super().__init__(
            f"Cannot execute statements against {type(handle).__name__!r}.",
            code="INVALID_BACKEND",
            details={"type": type(handle).__name__, "supported": supported},
        )


class InvalidOptionError(ValidationError):
    """Raised when a PorterOptions field holds an unusable value."""

    def __init__(self, option: str, value: Any, reason: str) -> None:
        super().__init__(
            f"Invalid value for option '{option}': {value!r} ({reason}).",
            code="INVALID_OPTION",
            details={"option": option, "value": value, "reason": reason},
        )


class ParseError(SQLPorterError):
    """Raised when input cannot be parsed as a valid Document.

    Args:
        message: Human-readable description.
        raw: The raw string that failed to parse, when one was given.
    """

    def __init__(self, message: str, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


class ExecutionError(SQLPorterError):
    """Raised when the backend rejects a statement.

    The run that hit the failure is abandoned; statements after ``statement``
    are never submitted.

    Args:
        message: Human-readable description.
        statement: The SQL text the backend rejected.
        detail: The backend's own error message.
        executed: Number of statements that had already succeeded in the call.
    """

    def __init__(
        self,
        message: str,
        statement: str,
        detail: str,
        executed: int = 0,
    ) -> None:
        super().__init__(message)
        self.statement = statement
        self.detail = detail
        self.executed = executed
