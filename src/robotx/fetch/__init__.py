"""robots.txt retrieval: stream sources and the on-disk cache."""

from .cache import DEFAULT_EXPIRY, DEFAULT_PORTS, DeclarationCache, cache_path
from .source import HttpStreamSource, StreamSource

__all__ = [
    "DEFAULT_EXPIRY",
    "DEFAULT_PORTS",
    "DeclarationCache",
    "HttpStreamSource",
    "StreamSource",
    "cache_path",
]
