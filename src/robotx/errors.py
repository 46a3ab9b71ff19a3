"""Exception hierarchy for robots.txt retrieval.

None of these escape the public query surface of
:class:`~robotx.exclusion.RobotExclusion`: a declaration that cannot be
fetched is treated as "everything allowed". They exist so the fetch and
cache layers can signal failures precisely to the engine.
"""

from __future__ import annotations


class RobotExclusionError(Exception):
    """Base class for all robotx errors."""


class UnsupportedSchemeError(RobotExclusionError, ValueError):
    """The target URL does not use a network scheme with a robots.txt."""

    def __init__(self, url: str, scheme: str) -> None:
        super().__init__(f"Unsupported scheme {scheme!r} in {url}")
        self.url = url
        self.scheme = scheme


class FetchError(RobotExclusionError, OSError):
    """A robots.txt could not be retrieved from its address."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {address}: {reason}")
        self.address = address
        self.reason = reason


class CacheWriteError(RobotExclusionError, OSError):
    """A refreshed robots.txt could not be persisted to the cache."""

    def __init__(self, address: str, path: str, reason: str) -> None:
        super().__init__(f"Failed to cache {address} at {path}: {reason}")
        self.address = address
        self.path = path
        self.reason = reason
