"""Tests for ProfileFetcher against a local HTTP server."""

from __future__ import annotations

import pytest

from qp_common.errors import ProfileFetchError, ProfileUnsupported
from qp_runner.fetcher import ProfileFetcher
from qp_runner.transport import HttpTarget


pytestmark = pytest.mark.unit_runner


def test_profile_url_replaces_base_path_and_adds_debug() -> None:
    fetcher = ProfileFetcher(HttpTarget("http://influx:8086/some/prefix"))
    assert fetcher.profile_url("heap", 1) == "http://influx:8086/debug/pprof/heap?debug=1"
    assert fetcher.profile_url("profile", 0) == "http://influx:8086/debug/pprof/profile"


def test_fetch_returns_body_verbatim(http_server) -> None:
    payload = bytes(range(256)) * 4
    http_server.route("/debug/pprof/heap", body=payload)
    fetcher = ProfileFetcher(HttpTarget(http_server.url))

    assert fetcher.fetch("heap", 1) == payload
    path, query, _ = http_server.requests[-1]
    assert path == "/debug/pprof/heap"
    assert query == {"debug": ["1"]}


def test_fetch_sends_basic_auth_when_configured(http_server) -> None:
    http_server.route("/debug/pprof/mutex", body=b"ok")
    fetcher = ProfileFetcher(HttpTarget(http_server.url, user="admin", password="pw"))
    fetcher.fetch("mutex", 1)
    _, _, headers = http_server.requests[-1]
    assert headers["Authorization"] == "Basic YWRtaW46cHc="


def test_not_found_signals_unsupported(http_server) -> None:
    fetcher = ProfileFetcher(HttpTarget(http_server.url))
    with pytest.raises(ProfileUnsupported):
        fetcher.fetch("block", 1)


def test_server_error_carries_status_and_header(http_server) -> None:
    http_server.route(
        "/debug/pprof/profile",
        status=500,
        headers={"X-Influxdb-Error": "pprof disabled"},
        body=b"",
    )
    fetcher = ProfileFetcher(HttpTarget(http_server.url))
    with pytest.raises(ProfileFetchError) as excinfo:
        fetcher.fetch("profile")
    err = excinfo.value
    assert str(err) == "unexpected error 500 returned from server: pprof disabled"
    assert err.context["status"] == 500
    assert err.__cause__ is not None


def test_transport_failure_is_fetch_error(http_server) -> None:
    url = http_server.url
    http_server.close()
    fetcher = ProfileFetcher(HttpTarget(url), timeout=2)
    with pytest.raises(ProfileFetchError) as excinfo:
        fetcher.fetch("goroutine", 1)
    assert not isinstance(excinfo.value, ProfileUnsupported)
