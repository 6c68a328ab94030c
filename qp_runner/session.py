"""Profiling session orchestration.

A session captures every profile once before the workload starts (``base-``
entries), once from a background thread while the workload runs
(``concurrent-`` entries, concurrent kinds only) and once after it ends (bare
entries), then seals the archive with ``info.txt`` as its last entry.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol, Sequence

from qp_common.durations import format_duration
from qp_common.errors import ProfileUnsupported, SessionStateError
from qp_runner.archive import SynchronizedArchive
from qp_runner.models.config import RunMode
from qp_runner.profiles import CapturePhase, CapturedProfile, ProfileSpec, phase_specs
from qp_runner.run_log import SynchronizedLog
from qp_runner.workload import SessionRunner, SessionStats

logger = logging.getLogger(__name__)

INFO_ENTRY = "info.txt"

SHORT_RUN_NOTICE = (
    "\n***** NOTICE - QUERY EXECUTION {elapsed} *****\n"
    "This tool works most effectively if queries are executed for at least one minute\n"
    "when capturing CPU profiles. Consider increasing `-n` or setting `-t 1m`.\n\n"
)

_DONE = object()


class Fetcher(Protocol):
    def fetch(self, name: str, debug: int = 0) -> bytes: ...


class SessionState(str, Enum):
    IDLE = "idle"
    BASE_CAPTURE = "base_capture"
    RUNNING = "running"
    DRAINING = "draining"
    FINAL_CAPTURE = "final_capture"
    SEALED = "sealed"
    FAILED = "failed"


@dataclass
class SessionResult:
    """Outcome of a completed session."""

    archive_path: Path
    stats: SessionStats
    entries: list[str] = field(default_factory=list)
    short_run: bool = False


class ProfileSession:
    """Coordinate profile capture around one workload run."""

    def __init__(
        self,
        *,
        fetcher: Fetcher,
        runner: SessionRunner,
        run_log: SynchronizedLog,
        profiles: Sequence[ProfileSpec],
        archive_path: Path,
        warmup_seconds: float = 15.0,
        archive: SynchronizedArchive | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._runner = runner
        self._log = run_log
        self._profiles = tuple(profiles)
        self._archive_path = Path(archive_path)
        self._warmup_seconds = warmup_seconds
        self._archive = archive or SynchronizedArchive()
        self._cancel = threading.Event()
        self._state = SessionState.IDLE

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def include_cpu(self) -> bool:
        return any(spec.is_cpu for spec in self._profiles)

    def run(self, query: str, database: str, mode: RunMode) -> SessionResult:
        if self._state is not SessionState.IDLE:
            raise SessionStateError(
                "a profiling session can only run once",
                context={"state": self._state.value},
            )
        try:
            return self._run(query, database, mode)
        except BaseException:
            self._transition(SessionState.FAILED)
            self._cancel.set()
            self._archive.discard()
            raise

    def _run(self, query: str, database: str, mode: RunMode) -> SessionResult:
        self._transition(SessionState.BASE_CAPTURE)
        self._capture(CapturePhase.BASE)

        self._transition(SessionState.RUNNING)
        results: queue.Queue = queue.Queue(
            maxsize=len(phase_specs(self._profiles, CapturePhase.CONCURRENT)) + 1
        )
        worker = threading.Thread(
            target=self._concurrent_capture,
            args=(results,),
            name="qprof-concurrent-profiles",
            daemon=True,
        )
        worker.start()

        self._log.print("Begin query execution...")
        stats = self._runner.run(query, database, mode)
        short_run = stats.is_short_run(self.include_cpu)
        if short_run:
            self._log.write_raw(SHORT_RUN_NOTICE.format(elapsed=format_duration(stats.elapsed)))

        self._transition(SessionState.DRAINING)
        self._drain(results)
        worker.join()

        self._transition(SessionState.FINAL_CAPTURE)
        self._log.print("Taking final profiles...")
        self._capture(CapturePhase.FINAL)
        self._log.printf(
            "All profiles gathered and saved at %s. Total query executions: %d.",
            self._archive_path,
            stats.executions,
        )

        self._archive.append(INFO_ENTRY, self._log.encode())
        entries = self._archive.entries
        self._archive.seal(self._archive_path)
        self._transition(SessionState.SEALED)
        return SessionResult(
            archive_path=self._archive_path,
            stats=stats,
            entries=entries,
            short_run=short_run,
        )

    def _concurrent_capture(self, results: queue.Queue) -> None:
        try:
            self._log.printf(
                "Waiting %s seconds before taking concurrent profiles...",
                f"{self._warmup_seconds:g}",
            )
            if self._cancel.wait(self._warmup_seconds):
                return
            for spec in phase_specs(self._profiles, CapturePhase.CONCURRENT):
                if self._cancel.is_set():
                    return
                try:
                    self._write_profile(spec, CapturePhase.CONCURRENT)
                except Exception as exc:
                    results.put(exc)
                    return
                results.put(None)
        finally:
            results.put(_DONE)

    def _drain(self, results: queue.Queue) -> None:
        while True:
            outcome = results.get()
            if outcome is _DONE:
                return
            if outcome is not None:
                raise outcome

    def _capture(self, phase: CapturePhase) -> int:
        captured = 0
        for spec in phase_specs(self._profiles, phase):
            if self._write_profile(spec, phase) is not None:
                captured += 1
        logger.debug("Captured %d %s profiles", captured, phase.value)
        return captured

    def _write_profile(self, spec: ProfileSpec, phase: CapturePhase) -> CapturedProfile | None:
        if spec.is_cpu:
            self._log.print("Capturing CPU profile. This will take 30s...")
        try:
            payload = self._fetcher.fetch(spec.name, spec.debug)
        except ProfileUnsupported:
            self._log.printf("Skipping profile %s (unavailable or profiling disabled)", _quoted(spec.name))
            return None
        profile = CapturedProfile(
            name=spec.name,
            filename=spec.filename,
            payload=payload,
            phase=phase,
            captured_at=time.time(),
        )
        self._archive.append(profile.filename, profile.payload, mtime=profile.captured_at)
        self._log.printf("%s profile captured...", _quoted(profile.name))
        return profile

    def _transition(self, state: SessionState) -> None:
        logger.debug("Session state %s -> %s", self._state.value, state.value)
        self._state = state


def _quoted(name: str) -> str:
    return f'"{name}"'
