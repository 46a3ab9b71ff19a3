"""Stream sources: the capability that opens a robots.txt byte stream.

Anything with an ``open_stream(address) -> BinaryIO`` method can be passed
to :class:`~robotx.exclusion.RobotExclusion`; tests swap in in-memory
sources. The default, HttpStreamSource, issues a GET with httpx and hands
back the response body as a streaming reader. Closing the reader closes
the HTTP response.

Transient failures (transport errors, 5xx responses) are retried by
tenacity with exponential backoff. All failures surface as FetchError.
"""

from __future__ import annotations

import io
import logging
from typing import BinaryIO, Protocol, runtime_checkable

import httpx
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from robotx.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "robotx/1.0"


@runtime_checkable
class StreamSource(Protocol):
    """Opens a readable byte stream for a network address."""

    def open_stream(self, address: str) -> BinaryIO:
        """Return a binary stream over *address*; raise FetchError on failure."""
        ...


# Failures worth another attempt; e.g. UnsupportedProtocol never is
_TRANSIENT_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, _TRANSIENT_ERRORS):
        return True
    return (
        isinstance(exc, httpx.HTTPStatusError)
        and exc.response.status_code >= 500
    )


class _ResponseReader(io.RawIOBase):
    """Raw binary reader over a streaming httpx response body."""

    def __init__(self, address: str, response: httpx.Response) -> None:
        self._address = address
        self._response = response
        self._chunks = response.iter_bytes()
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
            except httpx.HTTPError as exc:
                raise FetchError(self._address, str(exc)) from exc
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        if not self.closed:
            self._response.close()
        super().close()


class HttpStreamSource:
    """Default StreamSource backed by an ``httpx.Client``.

    Parameters
    ----------
    user_agent:
        Sent as the ``User-Agent`` header on every request.
    timeout:
        Per-request timeout in seconds.
    attempts:
        Total attempts for transient failures (1 disables retry).
    backoff_base:
        Multiplier for the exponential backoff between attempts.
    client:
        Optional client whose lifecycle the caller manages. When omitted the
        source creates one and closes it in :meth:`close`.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 10.0,
        attempts: int = 3,
        backoff_base: float = 1.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.user_agent = user_agent
        self._attempts = attempts
        self._backoff_base = backoff_base
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
        )

    def __enter__(self) -> HttpStreamSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _send(self, address: str) -> httpx.Response:
        request = self._client.build_request(
            "GET",
            address,
            headers={"User-Agent": self.user_agent},
        )
        response = self._client.send(request, stream=True)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError:
            response.close()
            raise
        return response

    def open_stream(self, address: str) -> BinaryIO:
        retrying = Retrying(
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=self._backoff_base, max=30),
            retry=retry_if_exception(_is_transient),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            response = retrying(self._send, address)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(address, str(exc)) from exc

        logger.debug(
            "Opened %s (HTTP %d)",
            address,
            response.status_code,
        )
        return io.BufferedReader(_ResponseReader(address, response))
