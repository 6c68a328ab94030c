"""Shared error taxonomy for qprof."""

from __future__ import annotations

from typing import Any, Mapping, TypeVar


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {key: _normalize_context_value(val) for key, val in context.items()}


class QPError(Exception):
    """Base error type for typed failure handling."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self), "context": self.context}


class ProfileUnsupported(QPError):
    """The target does not expose the requested profile kind (HTTP 404)."""


class ProfileFetchError(QPError):
    """Transport failure or unexpected status while fetching a profile."""


class WorkloadError(QPError):
    """Failure while executing the workload query."""


class ArchiveIOError(QPError):
    """Failure writing, sealing or persisting the profile archive."""


class ServerConnectionError(QPError):
    """The target server could not be reached at startup."""


class ConfigurationError(QPError):
    """Failure due to invalid configuration."""


class SessionStateError(QPError):
    """A profiling session was driven out of order."""


T = TypeVar("T", bound=QPError)


def wrap_error(
    error_cls: type[T],
    message: str,
    *,
    context: Mapping[str, Any] | None = None,
    cause: Exception | None = None,
) -> T:
    """Create a typed QPError with optional context and cause."""
    return error_cls(message, context=context, cause=cause)


def error_to_payload(error: QPError) -> dict[str, Any]:
    """Convert a QPError to a flat payload suitable for structured logs."""
    return {
        "error_type": error.error_type,
        "error": str(error),
        "error_context": error.context,
    }
