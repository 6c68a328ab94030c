"""Data models for qp_runner."""

from qp_runner.models.config import ProfilerConfig, RunMode

__all__ = ["ProfilerConfig", "RunMode"]
