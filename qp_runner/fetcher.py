"""Fetch raw profiles from the target's /debug/pprof endpoint."""

from __future__ import annotations

import logging
import posixpath
from urllib import error

from qp_common.errors import ProfileFetchError, ProfileUnsupported
from qp_runner.transport import HttpTarget

logger = logging.getLogger(__name__)

PPROF_PATH = "/debug/pprof/"
DEFAULT_ERROR_HEADER = "X-Influxdb-Error"


class ProfileFetcher:
    """Issue one blocking GET per profile and buffer the whole body.

    A 404 means the target does not expose that profile kind and raises
    ``ProfileUnsupported``; every other failure raises ``ProfileFetchError``.
    There are no retries.
    """

    def __init__(
        self,
        target: HttpTarget,
        *,
        error_header: str = DEFAULT_ERROR_HEADER,
        timeout: float | None = None,
    ) -> None:
        self._target = target
        self._error_header = error_header
        self._timeout = timeout

    def profile_url(self, name: str, debug: int = 0) -> str:
        params = {"debug": str(debug)} if debug > 0 else None
        return self._target.url(posixpath.join(PPROF_PATH, name), params)

    def fetch(self, name: str, debug: int = 0) -> bytes:
        url = self.profile_url(name, debug)
        logger.debug("Fetching profile %s from %s", name, url)
        try:
            with self._target.open(url, timeout=self._timeout) as resp:
                status = resp.status
                diagnostic = resp.headers.get(self._error_header, "")
                body = resp.read()
        except error.HTTPError as exc:
            status = exc.code
            diagnostic = exc.headers.get(self._error_header, "") if exc.headers else ""
            if status == 404:
                raise ProfileUnsupported(
                    "profile unsupported",
                    context={"profile": name, "url": url},
                    cause=exc,
                ) from exc
            raise self._status_error(name, url, status, diagnostic, exc) from exc
        except (error.URLError, OSError) as exc:
            raise ProfileFetchError(
                f"failed to fetch profile {name!r}: {exc}",
                context={"profile": name, "url": url},
                cause=exc,
            ) from exc

        if status == 404:
            raise ProfileUnsupported("profile unsupported", context={"profile": name, "url": url})
        if status != 200:
            raise self._status_error(name, url, status, diagnostic, None)
        logger.debug("Fetched profile %s (%d bytes)", name, len(body))
        return body

    @staticmethod
    def _status_error(
        name: str, url: str, status: int, diagnostic: str, cause: Exception | None
    ) -> ProfileFetchError:
        return ProfileFetchError(
            f"unexpected error {status} returned from server: {diagnostic}",
            context={"profile": name, "url": url, "status": status, "diagnostic": diagnostic},
            cause=cause,
        )
