"""robots.txt parsing and rule matching."""

from .group import (
    ROBOTS_TXT_PATH,
    Directive,
    PathRule,
    RuleGroup,
    rule_matches,
)
from .parser import DeclarationParser, parse_declaration

__all__ = [
    "ROBOTS_TXT_PATH",
    "DeclarationParser",
    "Directive",
    "PathRule",
    "RuleGroup",
    "parse_declaration",
    "rule_matches",
]
