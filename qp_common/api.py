"""Public API surface for qp_common."""

from qp_common.durations import format_duration, parse_duration
from qp_common.errors import (
    ArchiveIOError,
    ConfigurationError,
    ProfileFetchError,
    ProfileUnsupported,
    QPError,
    ServerConnectionError,
    SessionStateError,
    WorkloadError,
    error_to_payload,
    wrap_error,
)
from qp_common.logging import configure_logging

__all__ = [
    "ArchiveIOError",
    "ConfigurationError",
    "ProfileFetchError",
    "ProfileUnsupported",
    "QPError",
    "ServerConnectionError",
    "SessionStateError",
    "WorkloadError",
    "configure_logging",
    "error_to_payload",
    "format_duration",
    "parse_duration",
    "wrap_error",
]
