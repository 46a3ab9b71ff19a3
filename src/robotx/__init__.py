"""robotx -- Robots Exclusion Protocol checks with a cached robots.txt store.

Public API:
    RobotExclusion(stream_source=None, cache_dir=None)
        .allows(url, user_agent) -> bool
        .get_crawl_delay(url, user_agent) -> int
        .get_group(url, user_agent) -> RuleGroup | None
        .get(url) -> DeclarationParser | None
"""

from robotx.errors import (
    CacheWriteError,
    FetchError,
    RobotExclusionError,
    UnsupportedSchemeError,
)
from robotx.exclusion import RobotExclusion, declaration_address
from robotx.fetch import DeclarationCache, HttpStreamSource, StreamSource
from robotx.rules import (
    DeclarationParser,
    Directive,
    PathRule,
    RuleGroup,
    parse_declaration,
    rule_matches,
)

__all__ = [
    "CacheWriteError",
    "DeclarationCache",
    "DeclarationParser",
    "Directive",
    "FetchError",
    "HttpStreamSource",
    "PathRule",
    "RobotExclusion",
    "RobotExclusionError",
    "RuleGroup",
    "StreamSource",
    "UnsupportedSchemeError",
    "declaration_address",
    "parse_declaration",
    "rule_matches",
]
