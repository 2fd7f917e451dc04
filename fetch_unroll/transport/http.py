"""HTTP(S) transport: a single GET with bounded, explicit redirect following.

httpx is used with ``follow_redirects=False``; every hop is a transition of a
:class:`RedirectState` (current URL + remaining hop budget) so the bound can be
tested on its own. The response body is handed out as a buffered, forward-only
binary stream that owns the underlying client.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import BinaryIO
from urllib.parse import urljoin, urlparse

import httpx

from fetch_unroll.errors import FetchUnrollError, TransportError
from fetch_unroll.logging import get_logger
from fetch_unroll.types import TransportOptions

SUPPORTED_SCHEMES = frozenset({"http", "https"})

log = get_logger()


def _check_scheme(url: str) -> None:
    scheme = urlparse(url).scheme.lower()
    if scheme not in SUPPORTED_SCHEMES:
        raise TransportError(f"Unsupported URL scheme {scheme!r}: {url}")


@dataclass(frozen=True)
class RedirectState:
    url: str
    remaining: int

    def follow(self, location: str) -> RedirectState:
        """Return the state after following a redirect to *location*.

        Raises TransportError naming the target once the hop budget is spent.
        """
        target = urljoin(self.url, location)
        if self.remaining <= 0:
            raise TransportError(f"Too many redirects, last target: {target}")
        _check_scheme(target)
        return RedirectState(url=target, remaining=self.remaining - 1)


class ResponseStream(io.RawIOBase):
    """Raw reader over a streamed httpx response body."""

    def __init__(self, client: httpx.Client, response: httpx.Response) -> None:
        super().__init__()
        self._client = client
        self._response = response
        self._chunks = response.iter_bytes()
        self._pending = b""

    @property
    def url(self) -> str:
        return str(self._response.url)

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
            except httpx.HTTPError as exc:
                raise TransportError(f"Failed reading response body from {self.url}: {exc}") from exc
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        if not self.closed:
            try:
                self._response.close()
            finally:
                self._client.close()
        super().close()


def _send(client: httpx.Client, url: str) -> httpx.Response:
    try:
        return client.send(client.build_request("GET", url), stream=True)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise TransportError(f"Transport error: {exc}") from exc


def open_url(
    url: str,
    options: TransportOptions | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> BinaryIO:
    """GET *url* and return a readable stream over the response body.

    Parameters
    ----------
    url: str
        http:// or https:// URL.
    options: TransportOptions | None
        Redirect limit, timeout and User-Agent. Defaults apply when omitted.
    transport: httpx.BaseTransport | None
        Alternative httpx transport (e.g. ``httpx.MockTransport`` in tests).

    Raises
    ------
    TransportError
        On network failure, non-success status or redirect loop.
    """
    options = options or TransportOptions()
    _check_scheme(url)

    client = httpx.Client(
        follow_redirects=False,
        timeout=options.timeout,
        headers={"User-Agent": options.user_agent},
        transport=transport,
    )
    try:
        state = RedirectState(url=url, remaining=options.max_redirects)
        log.info("fetching %s", url)
        while True:
            response = _send(client, state.url)
            if not response.is_redirect:
                break
            location = response.headers["location"]
            response.close()
            state = state.follow(location)
            log.debug("redirected to %s (%d hops left)", state.url, state.remaining)

        if not response.is_success:
            response.close()
            raise TransportError(
                f"Invalid status: {response.status_code} {response.reason_phrase} ({state.url})"
            )
    except Exception:
        client.close()
        raise

    log.debug("receiving body from %s", state.url)
    return io.BufferedReader(ResponseStream(client, response))


@dataclass
class FetchSource:
    """Either an opened body stream or the error that prevented opening it.

    The source owns its stream: consumers close it through :meth:`close` or by
    using the source as a context manager.
    """

    stream: BinaryIO | None = None
    error: FetchUnrollError | None = None

    @classmethod
    def from_fileobj(cls, fileobj: BinaryIO) -> FetchSource:
        return cls(stream=fileobj)

    def reader(self) -> BinaryIO:
        if self.error is not None:
            raise self.error
        if self.stream is None:
            raise FetchUnrollError("Fetch source has no stream to read")
        return self.stream

    def close(self) -> None:
        if self.stream is not None:
            self.stream.close()

    def __enter__(self) -> FetchSource:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def fetch(
    url: str,
    options: TransportOptions | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> FetchSource:
    """Like :func:`open_url`, but a failure is captured instead of raised."""
    try:
        return FetchSource(stream=open_url(url, options, transport=transport))
    except TransportError as exc:
        log.info("fetch failed: %s", exc)
        return FetchSource(error=exc)
