"""Profiling session runner for qprof."""

from qp_runner.api import ProfilerConfig, ProfileSession, SessionResult, run_profiler

__all__ = ["ProfileSession", "ProfilerConfig", "SessionResult", "run_profiler"]
