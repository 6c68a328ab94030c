"""End-to-end tests for run_profiler against a local fake InfluxDB."""

from __future__ import annotations

import io
import json
import tarfile

import pytest

from qp_common.errors import ArchiveIOError, ProfileFetchError, ServerConnectionError
from qp_runner.models.config import ProfilerConfig
from qp_runner.run_log import SynchronizedLog
from qp_runner.service import prepare_output_dir, run_profiler


pytestmark = pytest.mark.unit_runner


@pytest.fixture
def influx(http_server):
    http_server.route("/ping", status=204, headers={"X-Influxdb-Version": "1.8.10"})
    http_server.route(
        "/query",
        body=json.dumps({"results": [{"statement_id": 0, "series": []}]}).encode(),
    )
    for name in ("block", "goroutine", "heap", "mutex"):
        http_server.route(f"/debug/pprof/{name}", body=f"{name} payload".encode())
    return http_server


def _config(server, tmp_path, **overrides):
    values = {
        "host": server.url,
        "database": "telegraf",
        "query": "SELECT count(*) FROM cpu",
        "repeat": 2,
        "include_cpu": False,
        "warmup_seconds": 0,
        "output_dir": tmp_path / "out",
        "password": "secret",
        "user": "admin",
    }
    values.update(overrides)
    return ProfilerConfig(**values)


def test_full_run_writes_archive(influx, tmp_path) -> None:
    config = _config(influx, tmp_path)
    run_log = SynchronizedLog(console=io.StringIO())

    result = run_profiler(config, run_log=run_log)

    assert result.archive_path == tmp_path / "out" / "profiles.tar.gz"
    with tarfile.open(result.archive_path, "r:gz") as tar:
        names = tar.getnames()
        info = tar.extractfile("info.txt").read().decode()
        heap = tar.extractfile("base-heap.pb.gz").read()
    assert names[0] == "base-block.txt"
    assert names[-1] == "info.txt"
    assert "concurrent-goroutine.txt" in names
    assert heap == b"heap payload"
    assert info.startswith("Flags:\n")
    assert "-pass ******" in info
    assert "secret" not in info
    assert "Total query executions: 2." in info
    assert influx.paths().count("/query") == 2


def test_flag_dump_stays_off_the_console(influx, tmp_path) -> None:
    console = io.StringIO()
    run_profiler(_config(influx, tmp_path), run_log=SynchronizedLog(console=console))
    assert "Flags:" not in console.getvalue()
    assert "Begin query execution..." in console.getvalue()


def test_missing_profiles_are_skipped(influx, tmp_path) -> None:
    del influx.routes["/debug/pprof/mutex"]
    result = run_profiler(_config(influx, tmp_path), run_log=SynchronizedLog(console=io.StringIO()))
    assert not any("mutex" in name for name in result.entries)


def test_server_error_leaves_no_archive(influx, tmp_path) -> None:
    influx.route("/debug/pprof/heap", status=500, headers={"X-Influxdb-Error": "pprof disabled"})
    config = _config(influx, tmp_path)

    with pytest.raises(ProfileFetchError, match="pprof disabled"):
        run_profiler(config, run_log=SynchronizedLog(console=io.StringIO()))

    assert not config.archive_path.exists()
    assert "/query" not in influx.paths()


def test_unreachable_host_fails_on_ping(http_server, tmp_path) -> None:
    config = _config(http_server, tmp_path, ping_timeout=1)
    http_server.close()
    with pytest.raises(ServerConnectionError):
        run_profiler(config, run_log=SynchronizedLog(console=io.StringIO()))


def test_supplied_client_skips_ping(influx, tmp_path) -> None:
    class RecordingClient:
        def __init__(self):
            self.queries = 0
            self.closed = False

        def ping(self, timeout=None):
            raise AssertionError("ping should not be called")

        def query(self, text, database):
            self.queries += 1
            return []

        def close(self):
            self.closed = True

    client = RecordingClient()
    run_profiler(_config(influx, tmp_path), client=client, run_log=SynchronizedLog(console=io.StringIO()))

    assert client.queries == 2
    assert client.closed is True
    assert "/ping" not in influx.paths()


def test_prepare_output_dir_reports_failures(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x")
    config = ProfilerConfig(database="db", query="SELECT 1", output_dir=blocker / "sub")
    with pytest.raises(ArchiveIOError):
        prepare_output_dir(config)
