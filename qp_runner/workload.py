"""Drive the workload query and keep execution statistics."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from qp_common.durations import format_duration
from qp_common.errors import QPError, WorkloadError
from qp_runner.client import QueryClient
from qp_runner.models.config import RunMode
from qp_runner.run_log import SynchronizedLog

logger = logging.getLogger(__name__)

SHORT_RUN_SECONDS = 60.0


@dataclass
class SessionStats:
    """Counters owned by a SessionRunner; read once the loop has finished."""

    executions: int = 0
    elapsed: float = 0.0

    def is_short_run(self, include_cpu: bool) -> bool:
        """True when CPU profiles are enabled but the run lasted under a minute."""
        return include_cpu and self.elapsed < SHORT_RUN_SECONDS


class SessionRunner:
    """Execute one query repeatedly, either N times or for a duration.

    In timed mode elapsed time is checked before every execution, so the run
    may overshoot the duration by up to one execution but never cuts one
    short. The first failed execution aborts the run.
    """

    def __init__(
        self,
        client: QueryClient,
        run_log: SynchronizedLog,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._log = run_log
        self._clock = clock
        self.stats = SessionStats()

    def run(self, query: str, database: str, mode: RunMode) -> SessionStats:
        start = self._clock()
        if mode.is_timed:
            while self._clock() - start < mode.duration:
                self._execute(query, database)
            self._log.printf("Queries executed for at least %s", format_duration(mode.duration))
        else:
            for _ in range(mode.repeat):
                self._execute(query, database)
        self.stats.elapsed = self._clock() - start
        logger.debug(
            "Workload finished: %d executions in %.3fs",
            self.stats.executions,
            self.stats.elapsed,
        )
        return self.stats

    def _execute(self, query: str, database: str) -> None:
        self.stats.executions += 1
        started = self._clock()
        try:
            self._client.query(query, database)
        except QPError:
            raise
        except Exception as exc:
            raise WorkloadError(
                f"query execution failed: {exc}",
                context={"execution": self.stats.executions},
                cause=exc,
            ) from exc
        finally:
            took = self._clock() - started
            self._log.printf("Query %s took %s to execute.", _quote(query), format_duration(took))


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
