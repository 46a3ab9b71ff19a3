"""Streaming robots.txt parser.

DeclarationParser reads a binary stream line by line and yields RuleGroup
objects lazily, one per ``User-agent`` block, as each block is completed.
It is single-pass: re-parsing requires a fresh stream. The first group that
can act as a fallback (``User-agent: *`` or rules with no agent line) is
exposed as ``default_group`` once it has been read.

Malformed lines are skipped; parsing never raises on content.
"""

from __future__ import annotations

import io
import logging
import math
from collections.abc import Iterator
from typing import BinaryIO

from robotx.rules.group import Directive, PathRule, RuleGroup

logger = logging.getLogger(__name__)

_BOM = "\ufeff"


def _parse_crawl_delay(value: str) -> int | None:
    try:
        delay = float(value)
    except ValueError:
        return None
    if math.isnan(delay) or math.isinf(delay) or delay < 0:
        return None
    return int(delay)


class DeclarationParser:
    """Lazy iterator of RuleGroups read from a robots.txt byte stream.

    Use as a context manager (or call ``close()``) when abandoning the
    iteration early; the stream is closed automatically once exhausted.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._groups = self._read_groups()
        self.default_group: RuleGroup | None = None

    def __iter__(self) -> Iterator[RuleGroup]:
        return self

    def __next__(self) -> RuleGroup:
        return next(self._groups)

    def __enter__(self) -> DeclarationParser:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Stop parsing and close the underlying stream."""
        self._groups.close()
        self._stream.close()

    def _lines(self) -> Iterator[str]:
        text = io.TextIOWrapper(self._stream, encoding="utf-8", errors="replace")
        first = True
        for raw_line in text:
            if first:
                raw_line = raw_line.lstrip(_BOM)
                first = False
            yield raw_line

    def _finish(self, group: RuleGroup) -> RuleGroup:
        if self.default_group is None and group.is_default:
            self.default_group = group
        return group

    def _read_groups(self) -> Iterator[RuleGroup]:
        current: RuleGroup | None = None
        in_rules = False
        try:
            for lineno, raw_line in enumerate(self._lines(), start=1):
                line = raw_line.split("#", 1)[0].strip()
                if not line:
                    continue
                if ":" not in line:
                    logger.debug("Skipping malformed robots.txt line %d", lineno)
                    continue

                directive, _, value = line.partition(":")
                directive = directive.strip().lower()
                value = value.strip()

                if directive == "user-agent":
                    if current is not None and in_rules:
                        yield self._finish(current)
                        current = None
                    if current is None:
                        current = RuleGroup()
                        in_rules = False
                    if value:
                        current.agents.append(value.lower())
                    continue

                if directive not in ("allow", "disallow", "crawl-delay"):
                    # Sitemap, Host, and other extensions
                    continue

                if current is None:
                    current = RuleGroup()
                in_rules = True

                if directive == "crawl-delay":
                    delay = _parse_crawl_delay(value)
                    if delay is None:
                        logger.debug(
                            "Ignoring invalid Crawl-delay %r on line %d",
                            value,
                            lineno,
                        )
                    else:
                        current.crawl_delay = delay
                elif value:
                    kind = (
                        Directive.ALLOW if directive == "allow" else Directive.DISALLOW
                    )
                    current.rules.append(PathRule(kind, value))

            if current is not None:
                yield self._finish(current)
        finally:
            self._stream.close()


def parse_declaration(content: str | bytes) -> list[RuleGroup]:
    """Parse a complete robots.txt document into a list of RuleGroups."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    with DeclarationParser(io.BytesIO(content)) as parser:
        return list(parser)
