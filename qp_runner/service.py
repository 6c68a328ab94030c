"""Entry point wiring config, client, fetcher and session together."""

from __future__ import annotations

import logging

from qp_common.errors import ArchiveIOError
from qp_runner.client import QueryClient, build_target, connect
from qp_runner.fetcher import ProfileFetcher
from qp_runner.models.config import ProfilerConfig
from qp_runner.profiles import select_profiles
from qp_runner.run_log import SynchronizedLog
from qp_runner.session import Fetcher, ProfileSession, SessionResult
from qp_runner.workload import SessionRunner

logger = logging.getLogger(__name__)


def prepare_output_dir(config: ProfilerConfig) -> None:
    try:
        config.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ArchiveIOError(
            f"cannot create output directory {config.output_dir}",
            context={"path": config.output_dir},
            cause=exc,
        ) from exc


def run_profiler(
    config: ProfilerConfig,
    *,
    client: QueryClient | None = None,
    fetcher: Fetcher | None = None,
    run_log: SynchronizedLog | None = None,
) -> SessionResult:
    """Run one full profiling session and return where the archive landed.

    ``client`` and ``fetcher`` default to the HTTP implementations built from
    ``config``; a supplied client is used as-is, without the startup ping. A
    run log created here is closed before returning.
    """
    owns_log = run_log is None
    run_log = run_log or SynchronizedLog()
    try:
        return _run(config, client, fetcher, run_log)
    finally:
        if owns_log:
            run_log.close()


def _run(
    config: ProfilerConfig,
    client: QueryClient | None,
    fetcher: Fetcher | None,
    run_log: SynchronizedLog,
) -> SessionResult:
    run_log.write_raw("\n".join(config.flag_lines()) + "\n", console=False)

    prepare_output_dir(config)
    if client is None:
        client = connect(config, run_log)
    if fetcher is None:
        fetcher = ProfileFetcher(build_target(config), error_header=config.error_header)

    try:
        session = ProfileSession(
            fetcher=fetcher,
            runner=SessionRunner(client, run_log),
            run_log=run_log,
            profiles=select_profiles(config.include_cpu),
            archive_path=config.archive_path,
            warmup_seconds=config.warmup_seconds,
        )
        logger.debug("Starting session against %s", config.host)
        return session.run(config.query, config.database, config.run_mode())
    finally:
        client.close()
