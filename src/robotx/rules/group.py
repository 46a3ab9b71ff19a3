"""Rule groups and path-pattern matching for parsed robots.txt files.

A RuleGroup is one ``User-agent`` block: the agent names it applies to,
its ordered Allow/Disallow rules and an optional Crawl-delay. Path patterns
support ``*`` wildcards and a trailing ``$`` end anchor; the longest
matching pattern decides, and Allow wins a tie.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache

ROBOTS_TXT_PATH = "/robots.txt"
WILDCARD_AGENT = "*"


class Directive(Enum):
    """Kind of path rule."""

    ALLOW = "allow"
    DISALLOW = "disallow"


@dataclass(frozen=True)
class PathRule:
    """A single Allow or Disallow directive."""

    directive: Directive
    pattern: str

    @property
    def allowed(self) -> bool:
        return self.directive is Directive.ALLOW


@lru_cache(maxsize=1024)
def _compile_pattern(pattern: str) -> re.Pattern[str]:
    anchored = pattern.endswith("$")
    body = pattern[:-1] if anchored else pattern
    regex = ".*".join(re.escape(part) for part in body.split("*"))
    if anchored:
        regex += r"\Z"
    return re.compile(regex, re.DOTALL)


def rule_matches(pattern: str, path: str) -> bool:
    """Check if a robots.txt path pattern matches a URL path.

    ``*`` matches any run of characters and a trailing ``$`` anchors the
    end of the path. Without ``$`` the pattern is a prefix match. An empty
    pattern matches nothing (an empty Disallow allows everything).
    """
    if not pattern:
        return False
    return _compile_pattern(pattern).match(path) is not None


@dataclass
class RuleGroup:
    """A group of rules for one or more user-agents.

    Agent names are stored lower-cased. A group with no agent names holds
    rules that appeared before any ``User-agent`` line.
    """

    agents: list[str] = field(default_factory=list)
    rules: list[PathRule] = field(default_factory=list)
    crawl_delay: int | None = None

    @property
    def is_wildcard(self) -> bool:
        """True if the group applies to every agent (agents are exactly ``*``)."""
        return set(self.agents) == {WILDCARD_AGENT}

    @property
    def is_default(self) -> bool:
        """True if this group may serve as the fallback for unmatched agents.

        Any group listing ``*``, even alongside named agents, qualifies, as
        does a group with no agent names at all.
        """
        return not self.agents or WILDCARD_AGENT in self.agents

    def names_match(self, user_agent: str) -> bool:
        """True if one of the named (non-wildcard) agents occurs in *user_agent*."""
        ua_lower = user_agent.lower()
        return any(
            name in ua_lower for name in self.agents if name != WILDCARD_AGENT
        )

    def matches(self, user_agent: str) -> bool:
        """True if this group applies to *user_agent*.

        A pure ``User-agent: *`` group applies to everyone; a group that also
        names agents applies only to those names.
        """
        return self.is_wildcard or self.names_match(user_agent)

    def best_rule(self, path: str) -> PathRule | None:
        """Return the most specific rule matching *path*, or None."""
        best: PathRule | None = None
        for rule in self.rules:
            if not rule_matches(rule.pattern, path):
                continue
            if best is None or len(rule.pattern) > len(best.pattern):
                best = rule
            elif len(rule.pattern) == len(best.pattern) and rule.allowed:
                best = rule
        return best

    def allows(self, path: str) -> bool:
        """Whether *path* may be fetched under this group's rules."""
        path = path or "/"
        if path == ROBOTS_TXT_PATH:
            return True
        rule = self.best_rule(path)
        return rule is None or rule.allowed

    def get_crawl_delay(self) -> int:
        return self.crawl_delay if self.crawl_delay is not None else 0
