"""HTTP plumbing shared by the query client and the profile fetcher."""

from __future__ import annotations

import base64
import posixpath
import ssl
from dataclasses import dataclass, field
from typing import Mapping
from urllib import parse, request


@dataclass
class HttpTarget:
    """Base URL, credentials and TLS policy of the server being profiled."""

    base_url: str
    user: str = ""
    password: str = ""
    insecure_ssl: bool = False
    _ssl_context: ssl.SSLContext | None = field(default=None, init=False, repr=False)

    def url(
        self,
        path: str,
        params: Mapping[str, str] | None = None,
        *,
        join: bool = False,
    ) -> str:
        """Return the absolute URL for ``path``.

        By default ``path`` replaces any base path. With ``join=True`` it is
        appended to the base path, so a host behind a path prefix keeps it.
        """
        parts = parse.urlsplit(self.base_url)
        if join:
            path = posixpath.join(parts.path or "/", path.lstrip("/"))
        query = parse.urlencode(dict(params)) if params else ""
        return parse.urlunsplit((parts.scheme, parts.netloc, path, query, ""))

    def headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.user:
            token = base64.b64encode(
                f"{self.user}:{self.password}".encode("utf-8")
            ).decode("ascii")
            headers["Authorization"] = f"Basic {token}"
        return headers

    def ssl_context(self) -> ssl.SSLContext | None:
        if not self.insecure_ssl:
            return None
        if self._ssl_context is None:
            context = ssl.create_default_context()
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
            self._ssl_context = context
        return self._ssl_context

    def open(
        self,
        url: str,
        *,
        form: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ):
        """Issue a request and return the urllib response object.

        A ``form`` is sent as an urlencoded POST body; otherwise the request is a GET.
        """
        headers = self.headers()
        data = None
        if form is not None:
            data = parse.urlencode(dict(form)).encode("utf-8")
            headers["Content-Type"] = "application/x-www-form-urlencoded"
        req = request.Request(url, data=data, headers=headers, method="GET" if data is None else "POST")
        kwargs: dict = {"context": self.ssl_context()}
        if timeout is not None:
            kwargs["timeout"] = timeout
        return request.urlopen(req, **kwargs)  # nosec B310
