"""Shared fixtures: in-memory stream sources for robots.txt retrieval."""

from __future__ import annotations

import io
import threading
import time

import pytest

from robotx.errors import FetchError

EXAMPLE_ADDRESS = "http://example.com/robots.txt"


class MemorySource:
    """StreamSource serving fixed documents and recording every open."""

    def __init__(self, documents: dict[str, bytes] | None = None) -> None:
        self.documents = dict(documents or {})
        self.calls: list[str] = []
        self.failing = False
        self.delay = 0.0
        self._lock = threading.Lock()

    def open_stream(self, address: str) -> io.BytesIO:
        with self._lock:
            self.calls.append(address)
        if self.delay:
            time.sleep(self.delay)
        if self.failing or address not in self.documents:
            raise FetchError(address, "unavailable")
        return io.BytesIO(self.documents[address])


class FailingSource:
    """StreamSource that never succeeds."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def open_stream(self, address: str) -> io.BytesIO:
        self.calls.append(address)
        raise FetchError(address, "connection refused")


@pytest.fixture
def memory_source() -> MemorySource:
    return MemorySource()


@pytest.fixture
def failing_source() -> FailingSource:
    return FailingSource()
