"""Robots Exclusion Protocol checks for target URLs.

RobotExclusion answers, for a URL and a user-agent string, whether the
URL may be fetched and what Crawl-delay applies. It derives the site's
robots.txt address from the URL, obtains the file through the
DeclarationCache (or directly from the stream source when caching is off),
and picks the rule group that applies to the agent.

Any failure to obtain or read robots.txt is treated as "no restrictions":
the public queries never raise for network or cache problems.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import timedelta
from urllib.parse import urlsplit, urlunsplit

from robotx.config import RobotsSettings
from robotx.errors import UnsupportedSchemeError
from robotx.fetch.cache import DEFAULT_EXPIRY, DEFAULT_PORTS, DeclarationCache
from robotx.fetch.source import HttpStreamSource, StreamSource
from robotx.rules.group import ROBOTS_TXT_PATH, RuleGroup
from robotx.rules.parser import DeclarationParser

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = frozenset(DEFAULT_PORTS)


def declaration_address(url: str) -> str:
    """Return the robots.txt address governing *url*.

    Scheme and host are lower-cased; the port is kept only when it is not
    the scheme's default. User info, path, query and fragment are dropped.

    Raises:
        UnsupportedSchemeError: If *url* is not http or https.
        ValueError: If *url* has no host or an invalid port.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    if scheme not in SUPPORTED_SCHEMES:
        raise UnsupportedSchemeError(url, parts.scheme)
    if not parts.hostname:
        raise ValueError(f"No host in {url}")

    netloc = parts.hostname.lower()
    if ":" in netloc:
        netloc = f"[{netloc}]"  # IPv6 literal
    port = parts.port
    if port is not None and port != DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"
    return urlunsplit((scheme, netloc, ROBOTS_TXT_PATH, "", ""))


def _url_path(url: str) -> str:
    return urlsplit(url).path or "/"


class RobotExclusion:
    """Check URLs against the robots.txt of their site.

    Parameters
    ----------
    stream_source:
        Opens robots.txt byte streams. Defaults to :class:`HttpStreamSource`.
    cache_dir:
        Directory for cached robots.txt files; ``None`` disables caching.
    cache_expiry:
        Age after which a cached file is refetched.
    clock:
        Time source for cache expiry, in epoch seconds.
    """

    def __init__(
        self,
        stream_source: StreamSource | None = None,
        cache_dir: str | None = None,
        cache_expiry: timedelta = DEFAULT_EXPIRY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._owns_source = stream_source is None
        if stream_source is None:
            stream_source = HttpStreamSource()
        elif not isinstance(stream_source, StreamSource):
            raise TypeError(
                f"stream_source must provide open_stream(), "
                f"got {type(stream_source).__name__}"
            )
        self.stream_source = stream_source
        self.cache = DeclarationCache(
            stream_source,
            root=cache_dir,
            expiry=cache_expiry,
            clock=clock,
        )

    @classmethod
    def from_settings(cls, settings: RobotsSettings) -> RobotExclusion:
        """Build an instance with an HTTP source configured from *settings*."""
        source = HttpStreamSource(
            user_agent=settings.user_agent,
            timeout=settings.request_timeout_seconds,
            attempts=settings.fetch_attempts,
        )
        exclusion = cls(
            stream_source=source,
            cache_dir=settings.cache_dir,
            cache_expiry=timedelta(seconds=settings.cache_expiry_seconds),
        )
        exclusion._owns_source = True
        logger.info(
            "RobotExclusion configured -- user_agent=%s, cache_dir=%s, expiry=%ss",
            settings.user_agent,
            settings.cache_dir,
            settings.cache_expiry_seconds,
        )
        return exclusion

    def __enter__(self) -> RobotExclusion:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP source if this instance created it."""
        if self._owns_source and isinstance(self.stream_source, HttpStreamSource):
            self.stream_source.close()

    def get(self, url: str) -> DeclarationParser | None:
        """Return a parser over the robots.txt governing *url*, or None.

        None means no robots.txt is available: the scheme is unsupported or
        the file could not be fetched. The caller owns the returned parser
        and should close it (or exhaust it).
        """
        try:
            address = declaration_address(url)
        except ValueError as exc:
            logger.debug("No robots.txt applies to %s: %s", url, exc)
            return None

        try:
            stream = self.cache.fetch(address)
        except OSError as exc:
            logger.info("Failed to fetch %s: %s", address, exc)
            return None
        return DeclarationParser(stream)

    def get_group(self, url: str, user_agent: str) -> RuleGroup | None:
        """Return the rule group governing *user_agent* for *url*, or None.

        The first group naming the agent wins; otherwise the file's default
        group (``User-agent: *``) applies. A wildcard group never hides a
        later group that names the agent.
        """
        parser = self.get(url)
        if parser is None:
            return None

        try:
            with parser:
                for group in parser:
                    if group.names_match(user_agent):
                        return group
                return parser.default_group
        except OSError as exc:
            logger.info("Failed to read robots.txt for %s: %s", url, exc)
            return None

    def allows(self, url: str, user_agent: str) -> bool:
        """Whether *user_agent* may fetch *url*."""
        path = _url_path(url)
        # robots.txt itself is always fetchable
        if path == ROBOTS_TXT_PATH:
            return True

        group = self.get_group(url, user_agent)
        allowed = group is None or group.allows(path)
        if not allowed:
            logger.debug("robots.txt disallows %s for %s", url, user_agent)
        return allowed

    def get_crawl_delay(self, url: str, user_agent: str) -> int:
        """Crawl-delay in seconds for *user_agent* on *url*'s site, 0 if unset."""
        group = self.get_group(url, user_agent)
        if group is None:
            return 0
        return group.get_crawl_delay()
