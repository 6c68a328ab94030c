"""Run log shared by the workload loop, the background capture and the session."""

from __future__ import annotations

import io
import logging
import sys
import threading
from typing import Any, TextIO

LOG_FORMAT = "%(asctime)s %(message)s"
DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


class SynchronizedLog:
    """Append-only log mirrored to a console stream and an in-memory buffer.

    The buffer becomes ``info.txt`` in the archive. One lock spans both
    destinations, so concurrent writers never interleave partial lines and
    both copies see lines in the same order. Lines are formatted here and
    written straight to both streams: no logger is registered, so global
    ``logging`` levels and ``logging.disable`` never drop a line.
    """

    def __init__(self, console: TextIO | None = None) -> None:
        self._lock = threading.Lock()
        self._buffer = io.StringIO()
        self._console = console if console is not None else sys.stderr
        self._formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        self._closed = False

    def print(self, *parts: Any) -> None:
        message = " ".join(str(part) for part in parts).rstrip("\n")
        record = logging.makeLogRecord(
            {"msg": message, "levelno": logging.INFO, "levelname": "INFO"}
        )
        line = self._formatter.format(record) + "\n"
        self._write(line, console=True)

    def printf(self, fmt: str, *args: Any) -> None:
        self.print(fmt % args if args else fmt)

    def write_raw(self, text: str, *, console: bool = True) -> None:
        """Write ``text`` verbatim (no timestamp); ``console=False`` keeps it out of the live stream."""
        self._write(text, console=console)

    def getvalue(self) -> str:
        with self._lock:
            return self._buffer.getvalue()

    def encode(self) -> bytes:
        return self.getvalue().encode("utf-8")

    def close(self) -> None:
        """Stop accepting lines; the buffered text stays readable."""
        with self._lock:
            self._closed = True
            self._console.flush()

    def _write(self, text: str, *, console: bool) -> None:
        with self._lock:
            if self._closed:
                return
            self._buffer.write(text)
            if console:
                self._console.write(text)
                self._console.flush()
