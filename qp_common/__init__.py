"""Shared helpers for qprof."""

from qp_common.api import QPError, configure_logging, format_duration, parse_duration

__all__ = ["QPError", "configure_logging", "format_duration", "parse_duration"]
