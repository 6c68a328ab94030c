"""Stable runner API surface."""

from qp_runner.archive import SynchronizedArchive
from qp_runner.client import InfluxQueryClient, QueryClient, connect
from qp_runner.fetcher import ProfileFetcher
from qp_runner.models.config import ProfilerConfig, RunMode
from qp_runner.profiles import (
    DEFAULT_PROFILES,
    CapturePhase,
    CapturedProfile,
    ProfileSpec,
    phase_specs,
    select_profiles,
)
from qp_runner.run_log import SynchronizedLog
from qp_runner.service import run_profiler
from qp_runner.session import ProfileSession, SessionResult, SessionState
from qp_runner.transport import HttpTarget
from qp_runner.workload import SessionRunner, SessionStats

__all__ = [
    "DEFAULT_PROFILES",
    "CapturePhase",
    "CapturedProfile",
    "HttpTarget",
    "InfluxQueryClient",
    "ProfileFetcher",
    "ProfileSession",
    "ProfileSpec",
    "ProfilerConfig",
    "QueryClient",
    "RunMode",
    "SessionResult",
    "SessionRunner",
    "SessionState",
    "SessionStats",
    "SynchronizedArchive",
    "SynchronizedLog",
    "connect",
    "phase_specs",
    "run_profiler",
    "select_profiles",
]
