"""File-backed robots.txt cache with one-week expiry.

Each robots.txt address maps to ``<root>/<scheme>/<host>[/<port>]/robots.txt``
(the port only when it is not the scheme default). The file's modification
time is its fetch time. Entries older than the expiry are refetched and
replaced in place; nothing is ever deleted.

Refreshes stream the source into a temporary file beside the entry and
rename it over the entry on success, so readers never see a partial file.
A per-entry lock serializes refreshes of the same address within a
process; different addresses refresh independently.

If a refresh fails, the previous entry (if any) keeps being served. If no
entry exists at all, the cache falls back to reading the source directly.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import threading
import time
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path
from typing import BinaryIO
from urllib.parse import urlsplit

from robotx.errors import CacheWriteError, FetchError
from robotx.fetch.source import StreamSource

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY = timedelta(weeks=1)

DEFAULT_PORTS = {"http": 80, "https": 443}

# mkstemp creates 0600 files; entries get the usual permissions instead
_UMASK = os.umask(0)
os.umask(_UMASK)
ENTRY_MODE = 0o644 & ~_UMASK


def cache_path(root: Path, address: str) -> Path:
    """Return the cache file for a robots.txt *address* under *root*.

    Raises:
        ValueError: If the address has no usable host.
    """
    parts = urlsplit(address)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if host in ("", ".", ".."):
        raise ValueError(f"No cacheable host in {address}")

    path = root / scheme / host
    port = parts.port
    if port is not None and port != DEFAULT_PORTS.get(scheme):
        path = path / str(port)
    return path / "robots.txt"


class DeclarationCache:
    """Serve robots.txt streams from a local cache, refreshing when stale.

    With ``root=None`` every fetch goes straight to the stream source.
    """

    def __init__(
        self,
        stream_source: StreamSource,
        root: str | Path | None = None,
        expiry: timedelta = DEFAULT_EXPIRY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = stream_source
        self.root = Path(root) if root is not None else None
        self.expiry = expiry
        self._clock = clock
        self._locks: dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, path: Path) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(path, threading.Lock())

    def _entry_is_fresh(self, path: Path) -> bool:
        try:
            fetched_at = path.stat().st_mtime
        except OSError:
            return False
        return self._clock() - fetched_at <= self.expiry.total_seconds()

    def is_fresh(self, address: str) -> bool:
        """True if a cached, unexpired copy of *address* exists."""
        if self.root is None:
            return False
        try:
            return self._entry_is_fresh(cache_path(self.root, address))
        except ValueError:
            return False

    def _refresh(self, address: str, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheWriteError(address, str(path.parent), str(exc)) from exc

        with self._source.open_stream(address) as stream:
            try:
                fd, tmp_name = tempfile.mkstemp(
                    prefix=path.name + ".",
                    suffix=".tmp",
                    dir=path.parent,
                )
            except OSError as exc:
                raise CacheWriteError(address, str(path), str(exc)) from exc

            tmp_path = Path(tmp_name)
            try:
                with os.fdopen(fd, "wb") as out:
                    shutil.copyfileobj(stream, out)
                os.chmod(tmp_path, ENTRY_MODE)
                os.replace(tmp_path, path)
            except FetchError:
                raise
            except OSError as exc:
                raise CacheWriteError(address, str(path), str(exc)) from exc
            finally:
                if tmp_path.exists():
                    try:
                        tmp_path.unlink()
                    except OSError:
                        logger.warning("Failed to clean up temp file %s", tmp_path)

        logger.debug("Cached %s at %s", address, path)

    def fetch(self, address: str) -> BinaryIO:
        """Return a binary stream over the robots.txt at *address*.

        Raises:
            FetchError: If no cached copy exists and the source fails.
        """
        if self.root is None:
            return self._source.open_stream(address)

        try:
            path = cache_path(self.root, address)
        except ValueError:
            logger.debug("Address %s is not cacheable, fetching directly", address)
            return self._source.open_stream(address)

        if not self._entry_is_fresh(path):
            with self._lock_for(path):
                # Another thread may have refreshed while we waited
                if not self._entry_is_fresh(path):
                    try:
                        self._refresh(address, path)
                    except CacheWriteError:
                        logger.warning(
                            "Could not cache %s, continuing without it",
                            address,
                            exc_info=True,
                        )
                    except OSError as exc:
                        logger.warning("Could not refresh %s: %s", address, exc)
        else:
            logger.debug("Cache hit for %s", address)

        try:
            return open(path, "rb")
        except FileNotFoundError:
            logger.debug("No cached copy of %s, fetching directly", address)
        except OSError:
            logger.warning(
                "Could not read cached %s at %s",
                address,
                path,
                exc_info=True,
            )
        return self._source.open_stream(address)
