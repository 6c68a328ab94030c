"""In-memory gzip'd tar archive that is safe for concurrent writers."""

from __future__ import annotations

import gzip
import io
import logging
import os
import tarfile
import tempfile
import threading
import time
from pathlib import Path

from qp_common.errors import ArchiveIOError

logger = logging.getLogger(__name__)

DEFAULT_MODE = 0o600


class SynchronizedArchive:
    """Build a ``.tar.gz`` in memory from entries appended by several threads.

    Each ``append`` writes a header and its payload under one lock, so entries
    from concurrent callers are never interleaved. ``seal`` closes the tar
    encoder, then the gzip encoder, then writes the buffer to disk; any other
    order leaves undefined trailing bytes. After ``seal`` or ``discard`` the
    archive accepts nothing else.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._buffer = io.BytesIO()
        self._gzip = gzip.GzipFile(fileobj=self._buffer, mode="wb")
        self._tar = tarfile.open(fileobj=self._gzip, mode="w", format=tarfile.PAX_FORMAT)
        self._entries: list[str] = []
        self._closed = False

    @property
    def entries(self) -> list[str]:
        """Names of the entries appended so far, in archive order."""
        with self._lock:
            return list(self._entries)

    @property
    def closed(self) -> bool:
        return self._closed

    def append(
        self,
        name: str,
        data: bytes,
        *,
        mode: int = DEFAULT_MODE,
        mtime: float | None = None,
    ) -> None:
        info = tarfile.TarInfo(name=name)
        info.size = len(data)
        info.mode = mode
        info.mtime = int(time.time() if mtime is None else mtime)
        with self._lock:
            self._ensure_open(name)
            try:
                self._tar.addfile(info, io.BytesIO(data))
            except (OSError, tarfile.TarError, ValueError) as exc:
                raise ArchiveIOError(
                    f"failed to write archive entry {name!r}",
                    context={"entry": name, "size": len(data)},
                    cause=exc,
                ) from exc
            self._entries.append(name)
        logger.debug("Archived %s (%d bytes)", name, len(data))

    def seal(self, path: Path) -> Path:
        """Close both encoders in order and persist the archive to ``path``.

        The file is written next to ``path`` and renamed into place, so the
        destination is either complete or absent.
        """
        path = Path(path)
        with self._lock:
            self._ensure_open(None)
            self._closed = True
            try:
                self._tar.close()
                self._gzip.close()
            except (OSError, tarfile.TarError) as exc:
                raise ArchiveIOError("failed to finalize archive", cause=exc) from exc
            payload = self._buffer.getvalue()
            self._buffer = io.BytesIO()

        tmp_name: str | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            raise ArchiveIOError(
                f"failed to write archive to {path}",
                context={"path": path},
                cause=exc,
            ) from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        logger.debug("Archive persisted to %s (%d bytes)", path, len(payload))
        return path

    def discard(self) -> None:
        """Drop the in-memory archive without writing anything to disk."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._buffer = io.BytesIO()
        logger.debug("Archive discarded with %d entries", len(self._entries))

    def _ensure_open(self, name: str | None) -> None:
        if self._closed:
            raise ArchiveIOError(
                "archive is already sealed or discarded",
                context={"entry": name} if name else None,
            )
