"""Query client for the workload target (InfluxDB 1.x HTTP API)."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Protocol
from urllib import error

from qp_common.durations import format_duration
from qp_common.errors import ServerConnectionError, WorkloadError
from qp_runner.models.config import ProfilerConfig
from qp_runner.run_log import SynchronizedLog
from qp_runner.transport import HttpTarget

logger = logging.getLogger(__name__)


class QueryClient(Protocol):
    """Connection to the workload target."""

    def ping(self, timeout: float | None = None) -> float: ...

    def query(self, text: str, database: str) -> list[dict[str, Any]]: ...

    def close(self) -> None: ...


class InfluxQueryClient:
    """Minimal InfluxDB client: ``/ping`` and ``/query`` over urllib.

    Both endpoints live under the host's base path. Queries are POSTed as a
    form so that write statements (``SELECT ... INTO``, DDL) are accepted.
    """

    def __init__(self, target: HttpTarget) -> None:
        self._target = target
        self.server_version: str | None = None

    def ping(self, timeout: float | None = None) -> float:
        """Ping the server and return the round-trip time in seconds."""
        url = self._target.url("/ping", join=True)
        start = time.perf_counter()
        try:
            with self._target.open(url, timeout=timeout) as resp:
                status = resp.status
                self.server_version = resp.headers.get("X-Influxdb-Version")
                resp.read()
        except (error.URLError, OSError) as exc:
            raise ServerConnectionError(
                f"failed to ping {self._target.base_url}: {exc}",
                context={"url": url},
                cause=exc,
            ) from exc
        if not 200 <= status < 300:
            raise ServerConnectionError(
                f"unexpected status {status} from {url}",
                context={"url": url, "status": status},
            )
        return time.perf_counter() - start

    def query(self, text: str, database: str) -> list[dict[str, Any]]:
        """Run ``text`` against ``database`` and return the series of every statement."""
        url = self._target.url("/query", join=True)
        try:
            with self._target.open(url, form={"db": database, "q": text}) as resp:
                body = resp.read()
        except error.HTTPError as exc:
            body = exc.read() if exc.fp else b""
            message = _decode_error(body) or f"HTTP {exc.code}"
            raise WorkloadError(
                message, context={"status": exc.code, "database": database}, cause=exc
            ) from exc
        except (error.URLError, OSError) as exc:
            raise WorkloadError(
                f"query request failed: {exc}", context={"database": database}, cause=exc
            ) from exc

        try:
            payload = json.loads(body.decode("utf-8") or "{}")
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise WorkloadError("malformed query response", cause=exc) from exc

        if payload.get("error"):
            raise WorkloadError(str(payload["error"]), context={"database": database})
        series: list[dict[str, Any]] = []
        for result in payload.get("results") or []:
            if result.get("error"):
                raise WorkloadError(
                    str(result["error"]),
                    context={"database": database, "statement_id": result.get("statement_id")},
                )
            series.extend(result.get("series") or [])
        return series

    def close(self) -> None:
        """Nothing to release; each request opens its own connection."""


def _decode_error(body: bytes) -> str | None:
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return body.decode("utf-8", errors="replace").strip() or None
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return None


def build_target(config: ProfilerConfig) -> HttpTarget:
    return HttpTarget(
        base_url=config.host,
        user=config.user,
        password=config.password,
        insecure_ssl=config.insecure_ssl,
    )


def connect(config: ProfilerConfig, run_log: SynchronizedLog) -> InfluxQueryClient:
    """Return a client for a server that has just answered a ping."""
    client = InfluxQueryClient(build_target(config))
    took = client.ping(timeout=config.ping_timeout)
    logger.debug("Server version %s", client.server_version)
    run_log.printf("Host %s responded to a ping in %s", config.host, format_duration(took))
    return client
