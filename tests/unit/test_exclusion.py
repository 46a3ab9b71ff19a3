"""Tests for robots.txt-based URL permission checks."""

import io

import pytest

from robotx.config import RobotsSettings
from robotx.errors import FetchError, UnsupportedSchemeError
from robotx.exclusion import RobotExclusion, declaration_address
from robotx.fetch.source import HttpStreamSource
from tests.conftest import EXAMPLE_ADDRESS, MemorySource


def _exclusion(content: str, **kwargs) -> RobotExclusion:
    source = MemorySource({EXAMPLE_ADDRESS: content.encode("utf-8")})
    return RobotExclusion(stream_source=source, **kwargs)


class _TruncatedBody(io.RawIOBase):
    """Yields the start of a robots.txt, then fails like a dropped connection."""

    def __init__(self, head: bytes) -> None:
        self._head = head

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if not self._head:
            raise FetchError(EXAMPLE_ADDRESS, "connection reset")
        size = min(len(buffer), len(self._head))
        buffer[:size] = self._head[:size]
        self._head = self._head[size:]
        return size


class TruncatingSource:
    def __init__(self) -> None:
        self.bodies: list[_TruncatedBody] = []

    def open_stream(self, address: str) -> io.BufferedReader:
        body = _TruncatedBody(b"User-agent: *\nCrawl-delay: 9\nDisallow: /\n")
        self.bodies.append(body)
        return io.BufferedReader(body)


class TestDeclarationAddress:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("http://example.com/a/b?q=1#f", "http://example.com/robots.txt"),
            ("HTTPS://Example.com/", "https://example.com/robots.txt"),
            ("http://example.com:80/x", "http://example.com/robots.txt"),
            ("https://example.com:8443/x", "https://example.com:8443/robots.txt"),
            ("http://user:pw@example.com/x", "http://example.com/robots.txt"),
            ("http://[::1]:8080/x", "http://[::1]:8080/robots.txt"),
        ],
    )
    def test_derivation(self, url, expected):
        assert declaration_address(url) == expected

    def test_same_site_same_address(self):
        assert declaration_address("http://example.com/a") == declaration_address(
            "http://EXAMPLE.com:80/b/c"
        )

    @pytest.mark.parametrize("url", ["ftp://example.com/x", "file:///etc/passwd"])
    def test_unsupported_scheme(self, url):
        with pytest.raises(UnsupportedSchemeError):
            declaration_address(url)


class TestGet:
    def test_unsupported_scheme_yields_none(self, memory_source):
        exclusion = RobotExclusion(stream_source=memory_source)
        assert exclusion.get("ftp://example.com/file") is None
        assert memory_source.calls == []

    def test_fetch_failure_yields_none(self, failing_source):
        exclusion = RobotExclusion(stream_source=failing_source)
        assert exclusion.get("http://example.com/") is None

    def test_returns_lazy_parser(self):
        exclusion = _exclusion("User-agent: *\nDisallow: /\n")
        with exclusion.get("http://example.com/page") as parser:
            groups = list(parser)
        assert [g.agents for g in groups] == [["*"]]


class TestAllows:
    def test_wildcard_disallow(self):
        exclusion = _exclusion("User-agent: *\nDisallow: /private\n")
        assert not exclusion.allows("http://example.com/private/x", "AnyBot")
        assert exclusion.allows("http://example.com/public", "AnyBot")

    def test_longest_match(self):
        exclusion = _exclusion("User-agent: *\nAllow: /dir/sub\nDisallow: /dir\n")
        assert exclusion.allows("http://example.com/dir/sub/file", "AnyBot")
        assert not exclusion.allows("http://example.com/dir/other", "AnyBot")

    def test_robots_txt_always_allowed(self):
        exclusion = _exclusion("User-agent: *\nDisallow: /\n")
        assert exclusion.allows("http://example.com/robots.txt", "AnyBot")
        assert not exclusion.allows("http://example.com/index.html", "AnyBot")

    def test_query_not_part_of_path(self):
        exclusion = _exclusion("User-agent: *\nDisallow: /search$\n")
        assert not exclusion.allows("http://example.com/search?q=robots", "AnyBot")

    def test_fail_open(self, failing_source):
        exclusion = RobotExclusion(stream_source=failing_source)
        for path in ("/", "/private", "/a/b/c"):
            assert exclusion.allows(f"http://example.com{path}", "AnyBot")
        assert exclusion.get_crawl_delay("http://example.com/", "AnyBot") == 0

    def test_read_failure_mid_stream_fails_open(self):
        source = TruncatingSource()
        exclusion = RobotExclusion(stream_source=source)
        assert exclusion.allows("http://example.com/private", "AnyBot")
        assert exclusion.get_crawl_delay("http://example.com/", "AnyBot") == 0
        assert len(source.bodies) == 2
        assert all(body.closed for body in source.bodies)

    def test_unsupported_scheme_allowed(self, memory_source):
        exclusion = RobotExclusion(stream_source=memory_source)
        assert exclusion.allows("mailto:someone@example.com", "AnyBot")

    def test_no_matching_group_and_no_default(self):
        exclusion = _exclusion("User-agent: OtherBot\nDisallow: /\n")
        assert exclusion.get_group("http://example.com/", "Fetchbot") is None
        assert exclusion.allows("http://example.com/x", "Fetchbot")
        assert not exclusion.allows("http://example.com/x", "OtherBot/3")


class TestGroupSelection:
    def test_specific_agent_beats_wildcard(self):
        exclusion = _exclusion(
            "User-agent: Fetchbot\nDisallow: /fetchbot-only\n\n"
            "User-agent: *\nDisallow: /\n"
        )
        group = exclusion.get_group("http://example.com/", "Fetchbot/2.0")
        assert group.agents == ["fetchbot"]
        assert exclusion.allows("http://example.com/page", "Fetchbot/2.0")
        assert not exclusion.allows("http://example.com/page", "OtherBot")

    def test_wildcard_first_does_not_hide_specific(self):
        exclusion = _exclusion(
            "User-agent: *\nDisallow: /\n\n"
            "User-agent: Fetchbot\nAllow: /\n"
        )
        assert exclusion.get_group("http://example.com/", "Fetchbot/2.0").agents == [
            "fetchbot"
        ]
        assert exclusion.allows("http://example.com/page", "Fetchbot/2.0")

    def test_first_named_group_wins(self):
        exclusion = _exclusion(
            "User-agent: bot\nCrawl-delay: 1\n\n"
            "User-agent: fetchbot\nCrawl-delay: 2\n"
        )
        assert exclusion.get_crawl_delay("http://example.com/", "fetchbot") == 1

    def test_crawl_delay(self):
        exclusion = _exclusion(
            "User-agent: Fetchbot\nCrawl-delay: 10\n\nUser-agent: *\nCrawl-delay: 3\n"
        )
        assert exclusion.get_crawl_delay("http://example.com/", "Fetchbot/2.0") == 10
        assert exclusion.get_crawl_delay("http://example.com/", "OtherBot") == 3

    def test_crawl_delay_unset(self):
        exclusion = _exclusion("User-agent: *\nDisallow: /x\n")
        assert exclusion.get_crawl_delay("http://example.com/", "AnyBot") == 0


class TestCaching:
    def test_single_fetch_per_site(self, tmp_path):
        source = MemorySource({EXAMPLE_ADDRESS: b"User-agent: *\nDisallow: /p\n"})
        exclusion = RobotExclusion(stream_source=source, cache_dir=str(tmp_path))
        assert not exclusion.allows("http://example.com/p/1", "AnyBot")
        assert exclusion.allows("http://example.com/q", "AnyBot")
        assert exclusion.get_crawl_delay("http://example.com/", "AnyBot") == 0
        assert len(source.calls) == 1


class TestConstruction:
    def test_rejects_object_without_open_stream(self):
        with pytest.raises(TypeError):
            RobotExclusion(stream_source=object())

    def test_default_source_is_http(self):
        with RobotExclusion() as exclusion:
            assert isinstance(exclusion.stream_source, HttpStreamSource)

    def test_from_settings(self, tmp_path):
        settings = RobotsSettings(
            user_agent="Fetchbot/2.0",
            cache_dir=str(tmp_path),
            cache_expiry_seconds=60,
        )
        with RobotExclusion.from_settings(settings) as exclusion:
            assert exclusion.stream_source.user_agent == "Fetchbot/2.0"
            assert exclusion.cache.root == tmp_path
            assert exclusion.cache.expiry.total_seconds() == 60
